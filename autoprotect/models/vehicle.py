from sqlalchemy import Column, String, Boolean, ForeignKey, Integer
from sqlalchemy.orm import relationship
from autoprotect.models.base import BaseModel


class Vehicle(BaseModel):
    __tablename__ = "vehicles"
    lead_id = Column(ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, unique=True)
    lead = relationship("Lead", back_populates="vehicle")
    year = Column(Integer, nullable=False)
    make = Column(String(80), nullable=False)
    model = Column(String(80), nullable=False)
    trim = Column(String(80))
    vin = Column(String(32))
    odometer = Column(Integer, nullable=False)
    usage = Column(String(40), default="personal")
    ev = Column(Boolean, default=False)

    @property
    def summary(self) -> str:
        return " ".join(str(p) for p in (self.year, self.make, self.model, self.trim) if p)
