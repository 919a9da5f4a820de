from pydantic import BaseModel
from typing import Optional

class Surah(BaseModel):
    id: int
    arabic_name: str
    english_name: str
    ayah_count: int
    revelation_type: Optional[str] = None

    class Config:
        from_attributes = True

class Ayah(BaseModel):
    id: int
    surah_id: int
    ayah_number: int
    arabic_text: str

    class Config:
        from_attributes = True

    @property
    def reference(self) -> str:
        return f"{self.surah_id}:{self.ayah_number}"
