from autoprotect.models.base import Base
from autoprotect.models.user import User
from autoprotect.models.lead import Lead
from autoprotect.models.vehicle import Vehicle
from autoprotect.models.quote import Quote
from autoprotect.models.note import Note, PolicyNote
from autoprotect.models.policy import Policy, PolicyFile
from autoprotect.models.claim import Claim
from autoprotect.models.contract import LeadContract
from autoprotect.models.customer import CustomerAccount, CustomerPolicy, CustomerPaymentProfile
from autoprotect.models.charge import PolicyCharge
from autoprotect.models.document import CustomerDocumentRequest, CustomerDocumentUpload
from autoprotect.models.email_template import EmailTemplate
from autoprotect.models.audit import Audit

__all__ = [
    "Base",
    "User",
    "Lead",
    "Vehicle",
    "Quote",
    "Note",
    "PolicyNote",
    "Policy",
    "PolicyFile",
    "Claim",
    "LeadContract",
    "CustomerAccount",
    "CustomerPolicy",
    "CustomerPaymentProfile",
    "PolicyCharge",
    "CustomerDocumentRequest",
    "CustomerDocumentUpload",
    "EmailTemplate",
    "Audit",
]
