"""git 参照のデータモデル。"""

from pydantic import BaseModel, Field


class GitRefs(BaseModel):
    """比較対象として選べるブランチとタグ。"""

    current_branch: str
    branches: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @property
    def all_refs(self) -> list[str]:
        return self.branches + self.tags
