from typing import TypedDict, List, Optional

# User Config Types (~/.tssemantic/config.yml)
class TsServerConfig(TypedDict, total=False):
    path: Optional[str]  # tsserver executable or tsserver.js
    node: str  # interpreter used when path is a .js file
    command: Optional[List[str]]  # explicit command, overrides path and node
    args: List[str]
    version: Optional[str]  # overrides detection from package.json

class SemanticTokensSettings(TypedDict, total=False):
    enabled: bool
    min_version: str

class UserConfig(TypedDict):
    tssemantic: int
    tsserver: TsServerConfig
    semantic_tokens: SemanticTokensSettings
