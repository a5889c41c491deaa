# examples/main.py
"""
Demo API: two resources and a nested route over a local SQLite file.

    uvicorn examples.main:app --reload

Then try:
    GET /drives?filter={"size_gte":10}&sort=["name","ASC"]&range=[0,9]
    GET /drives/1/tags?embed=["drive"]
"""

from typing import List, Optional

from fastapi import FastAPI
from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from crudforge import ApiForge, DbClient, ForgeConfig, HardDeleteModel, SoftDeleteModel


class Base(DeclarativeBase):
    pass


class Drive(SoftDeleteModel, Base):
    __tablename__ = "drives"

    name: Mapped[str] = mapped_column(String(64))
    size: Mapped[int] = mapped_column(Integer, default=0)
    locked: Mapped[bool] = mapped_column(Boolean, default=False)

    tags: Mapped[List["Tag"]] = relationship(back_populates="drive")

    def deletable(self, session) -> bool:
        return not self.locked


class Tag(HardDeleteModel, Base):
    __tablename__ = "tags"

    label: Mapped[str] = mapped_column(String(64))
    drive_id: Mapped[Optional[int]] = mapped_column(ForeignKey("drives.id"))

    drive: Mapped[Optional[Drive]] = relationship(back_populates="tags")


# ? Main API Forge -----------------------------------------------------------------------------------

db_client = DbClient("sqlite:///./demo.db", connect_args={"check_same_thread": False})
api_forge = ApiForge(
    config=ForgeConfig(project_name="Drive Catalog", version="0.1.0", debug_mode=True),
    db_client=db_client,
)

api_forge.resource(Drive)
api_forge.resource(Tag)
api_forge.nested(Drive, Tag, "tags")
api_forge.configure_error_handlers()
api_forge.migrate()

app: FastAPI = api_forge.mount()


if __name__ == "__main__":
    api_forge.print_welcome(port=8000)
