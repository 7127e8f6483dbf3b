from pydantic import AliasChoices, BaseModel, Field, model_validator
from typing import List, Optional


class ConceptBase(BaseModel):
    front_text: str
    back_text: str
    level: str = "beginner"
    category: Optional[str] = None
    example_front: Optional[str] = None
    example_back: Optional[str] = None
    pronunciation: Optional[str] = None


class ConceptCreate(ConceptBase):
    """One word of an imported package.

    Also accepts the content pipeline's field names (english/turkish and a
    nested ``example`` object).
    """
    id: int
    front_text: str = Field(validation_alias=AliasChoices("front_text", "english"))
    back_text: str = Field(validation_alias=AliasChoices("back_text", "turkish"))

    @model_validator(mode="before")
    @classmethod
    def flatten_example(cls, data):
        if isinstance(data, dict) and isinstance(data.get("example"), dict):
            data = dict(data)
            example = data.pop("example")
            data.setdefault("example_front", example.get("en") or example.get("front"))
            data.setdefault("example_back", example.get("tr") or example.get("back"))
        return data


class Concept(ConceptBase):
    id: int
    package_id: str
    position: int = 0

    class Config:
        from_attributes = True


class PackageInfo(BaseModel):
    package_id: str = Field(min_length=1, validation_alias=AliasChoices("package_id", "id"))
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "description"))
    level: str = "beginner"


class PackageImport(BaseModel):
    """Word package payload as shipped by the content pipeline."""
    package_info: PackageInfo
    words: List[ConceptCreate]


class Package(BaseModel):
    id: str
    name: str
    level: str
    concept_count: int = 0

    class Config:
        from_attributes = True
