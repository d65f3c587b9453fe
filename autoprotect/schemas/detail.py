from pydantic import BaseModel
from typing import List, Optional
from autoprotect.schemas.contract import ContractOut
from autoprotect.schemas.customer import CustomerOut
from autoprotect.schemas.lead import LeadOut, LeadUpdate, NoteOut, VehicleOut, VehicleUpdate
from autoprotect.schemas.policy import PolicyFields, PolicyFileOut, PolicyOut
from autoprotect.schemas.quote import QuoteOut


class LeadDetail(BaseModel):
    lead: LeadOut
    vehicle: Optional[VehicleOut] = None
    quotes: List[QuoteOut] = []
    notes: List[NoteOut] = []
    policy: Optional[PolicyOut] = None
    contracts: List[ContractOut] = []


class PolicyDetail(BaseModel):
    policy: PolicyOut
    lead: LeadOut
    vehicle: Optional[VehicleOut] = None
    notes: List[NoteOut] = []
    files: List[PolicyFileOut] = []
    customers: List[CustomerOut] = []


class PolicySummary(BaseModel):
    policy: PolicyOut
    lead: LeadOut
    vehicle: Optional[VehicleOut] = None


class CustomerContract(BaseModel):
    contract: ContractOut
    quote: Optional[QuoteOut] = None
    vehicle: Optional[VehicleOut] = None


class PolicyUpdate(PolicyFields):
    lead: Optional[LeadUpdate] = None
    vehicle: Optional[VehicleUpdate] = None
