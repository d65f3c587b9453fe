from typing import List
from autoprotect.models.contract import LeadContract
from autoprotect.models.lead import Lead
from autoprotect.models.policy import Policy
from autoprotect.schemas.contract import ContractDocument, ContractOut
from autoprotect.schemas.customer import CustomerOut
from autoprotect.schemas.detail import LeadDetail, PolicyDetail, PolicySummary
from autoprotect.schemas.lead import LeadOut, LeadSummary, NoteOut, VehicleOut
from autoprotect.schemas.policy import PolicyFileOut, PolicyOut
from autoprotect.schemas.quote import QuoteOut
from autoprotect.utils.files import to_data_url


def build_vehicle_response(vehicle):
    return VehicleOut.model_validate(vehicle) if vehicle is not None else None


def build_lead_response(lead: Lead) -> LeadOut:
    return LeadOut.model_validate(lead)


def build_lead_summary(lead: Lead, quote_count: int = 0) -> LeadSummary:
    return LeadSummary(
        lead=build_lead_response(lead),
        vehicle=build_vehicle_response(lead.vehicle),
        quote_count=quote_count,
    )


def build_lead_detail(lead: Lead) -> LeadDetail:
    """``lead`` must be loaded with every detail relationship."""
    return LeadDetail(
        lead=build_lead_response(lead),
        vehicle=build_vehicle_response(lead.vehicle),
        quotes=[QuoteOut.model_validate(q) for q in lead.quotes],
        notes=[NoteOut.model_validate(n) for n in lead.notes],
        policy=PolicyOut.model_validate(lead.policy) if lead.policy is not None else None,
        contracts=[ContractOut.model_validate(c) for c in lead.contracts],
    )


def build_policy_summary(policy: Policy) -> PolicySummary:
    return PolicySummary(
        policy=PolicyOut.model_validate(policy),
        lead=build_lead_response(policy.lead),
        vehicle=build_vehicle_response(policy.lead.vehicle),
    )


def build_policy_detail(policy: Policy) -> PolicyDetail:
    return PolicyDetail(
        policy=PolicyOut.model_validate(policy),
        lead=build_lead_response(policy.lead),
        vehicle=build_vehicle_response(policy.lead.vehicle),
        notes=[NoteOut.model_validate(n) for n in policy.notes],
        files=[PolicyFileOut.model_validate(f) for f in policy.files],
        customers=[CustomerOut.model_validate(link.customer) for link in policy.customer_links],
    )


def build_contract_document(contract: LeadContract) -> ContractDocument:
    out = ContractOut.model_validate(contract)
    return ContractDocument(
        **out.model_dump(),
        data_url=to_data_url(contract.file_type or "application/pdf", contract.file_data),
    )


def build_list(schema, items) -> List:
    return [schema.model_validate(item) for item in items]
