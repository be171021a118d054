from sqlalchemy import Column, Integer, String, Text

from .database import Base


class InventoryItem(Base):
    __tablename__ = "inventory"
    # never hand out an id twice, even after the newest row is deleted
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    photo_filename = Column(String(512), nullable=True)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "photo_filename": self.photo_filename,
        }
