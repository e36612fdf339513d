from sqlalchemy import Column, Integer, String
from flightsearch.database import Base

class Airport(Base):
    __tablename__ = "airport"

    id = Column(Integer, primary_key=True)
    iata_code = Column(String(3), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=False)
    passengers = Column(Integer, nullable=False, default=0, index=True) # Only used for result ordering
