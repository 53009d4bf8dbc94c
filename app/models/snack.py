from sqlalchemy import Column, Float, Integer, String
from app.db import Base


class Snack(Base):
    __tablename__ = "snacks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    unit = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    category = Column(String, nullable=True)
