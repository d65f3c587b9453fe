from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"

    def __str__(self):
        return self.value


class PlanType(str, Enum):
    POWERTRAIN = "powertrain"
    GOLD = "gold"
    PLATINUM = "platinum"

    def __str__(self):
        return self.value


class LeadStatus(str, Enum):
    NEW = "new"
    QUOTED = "quoted"
    CALLBACK = "callback"
    LEFT_MESSAGE = "left-message"
    NO_CONTACT = "no-contact"
    WRONG_NUMBER = "wrong-number"
    FAKE_LEAD = "fake-lead"
    NOT_INTERESTED = "not-interested"
    DUPLICATE_LEAD = "duplicate-lead"
    DNC = "dnc"
    SOLD = "sold"

    def __str__(self):
        return self.value


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    def __str__(self):
        return self.value


class ClaimStatus(str, Enum):
    NEW = "new"
    DENIED = "denied"
    AWAITING_CUSTOMER_ACTION = "awaiting_customer_action"
    AWAITING_INSPECTION = "awaiting_inspection"
    CLAIM_COVERED_OPEN = "claim_covered_open"
    CLAIM_COVERED_CLOSED = "claim_covered_closed"

    def __str__(self):
        return self.value


class PolicyStatus(str, Enum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"

    def __str__(self):
        return self.value


class ContractStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"
    VOID = "void"

    def __str__(self):
        return self.value


class DocumentRequestType(str, Enum):
    VIN_PHOTO = "vin_photo"
    ODOMETER_PHOTO = "odometer_photo"
    DIAGNOSIS_REPORT = "diagnosis_report"
    REPAIR_INVOICE = "repair_invoice"
    OTHER = "other"

    def __str__(self):
        return self.value


class DocumentRequestStatus(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self):
        return self.value


class ChargeStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

    def __str__(self):
        return self.value


class AuditAction(str, Enum):
    CREATE_LEAD = "create_lead"
    UPDATE_LEAD = "update_lead"
    DELETE_LEAD = "delete_lead"
    CHANGE_LEAD_STATUS = "change_lead_status"
    SEND_QUOTE = "send_quote"
    SEND_CONTRACT = "send_contract"
    CONVERT_LEAD = "convert_lead"
    UPDATE_POLICY = "update_policy"
    DELETE_POLICY = "delete_policy"
    UPLOAD_POLICY_FILE = "upload_policy_file"
    RECORD_CHARGE = "record_charge"
    REQUEST_DOCUMENT = "request_document"
    CREATE_USER = "create_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"
    LOGIN = "login"

    def __str__(self):
        return self.value
