from sqlalchemy import Column, Integer, String, UniqueConstraint
from flightsearch.database import Base

class Favorite(Base):
    __tablename__ = "favorite"

    id = Column(Integer, primary_key=True, autoincrement=True)
    departure_code = Column(String(3), nullable=False, index=True)
    destination_code = Column(String(3), nullable=False, index=True)

    # The route pair is the logical key, the surrogate id is not
    __table_args__ = (
        UniqueConstraint('departure_code', 'destination_code', name='uq_departure_destination'),
    )
