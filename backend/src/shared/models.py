"""
Data models and status constants for the workforce platform.
Based on the worker lifecycle:
document_upload_pending → verification_pending → interview_pending → interview_scheduled → active_employee
"""


class Role:
    """Platform roles (Cognito groups)."""
    ADMIN = 'admin'
    EMPLOYER = 'employer'
    WORKER = 'worker'

    ALL = (ADMIN, EMPLOYER, WORKER)


class WorkerStatus:
    """Lifecycle statuses stored in profiles.workerStatus."""
    DOCUMENT_UPLOAD_PENDING = 'document_upload_pending'
    VERIFICATION_PENDING = 'verification_pending'
    INTERVIEW_PENDING = 'interview_pending'
    INTERVIEW_SCHEDULED = 'interview_scheduled'
    ACTIVE_EMPLOYEE = 'active_employee'
    REJECTED = 'rejected'

    ALL = (
        DOCUMENT_UPLOAD_PENDING,
        VERIFICATION_PENDING,
        INTERVIEW_PENDING,
        INTERVIEW_SCHEDULED,
        ACTIVE_EMPLOYEE,
        REJECTED,
    )
    PRE_ACTIVE = (
        DOCUMENT_UPLOAD_PENDING,
        VERIFICATION_PENDING,
        INTERVIEW_PENDING,
        INTERVIEW_SCHEDULED,
    )


class DocumentType:
    """Credential documents every worker must have approved."""
    TENTH_CERTIFICATE = '10th_certificate'
    TWELFTH_CERTIFICATE = '12th_certificate'
    GRADUATION_CERTIFICATE = 'graduation_certificate'
    RESUME = 'resume'
    KYC_DOCUMENT = 'kyc_document'

    REQUIRED = (
        TENTH_CERTIFICATE,
        TWELFTH_CERTIFICATE,
        GRADUATION_CERTIFICATE,
        RESUME,
        KYC_DOCUMENT,
    )

    # Company verification documents
    CIN = 'cin'
    MOA = 'moa'
    AOA = 'aoa'
    DSC = 'dsc'
    DIN = 'din'
    PHOTOGRAPHS = 'photographs'

    EMPLOYER_REQUIRED = (CIN, MOA, AOA, DSC, DIN, PHOTOGRAPHS)
    EMPLOYER_EXTENSIONS = ('pdf', 'jpg', 'jpeg', 'png')


class VerificationStatus:
    """Per-document review statuses."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    DECISIONS = (APPROVED, REJECTED)


class InterviewMode:
    ONLINE = 'online'
    OFFLINE = 'offline'

    ALL = (ONLINE, OFFLINE)


class InterviewStatus:
    """Interview record statuses."""
    SCHEDULED = 'scheduled'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    RESCHEDULED = 'rescheduled'  # legacy rows only, reschedules now keep 'scheduled'


class InterviewResult:
    SELECTED = 'selected'
    REJECTED = 'rejected'
    PENDING = 'pending'

    DECISIONS = (SELECTED, REJECTED)


class TaskStatus:
    """Task lifecycle statuses."""
    ACTIVE = 'active'
    PAUSED = 'paused'
    COMPLETED = 'completed'

    ALL = (ACTIVE, PAUSED, COMPLETED)


class SubmissionStatus:
    """Submission review statuses."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    DECISIONS = (APPROVED, REJECTED)


class PaymentStatus:
    """Manual bank-transfer payment statuses."""
    PENDING_DETAILS = 'pending_details'  # worker bank details incomplete
    PROCESSING = 'processing'
    COMPLETED = 'completed'


class ProofStatus:
    """Transaction proof review statuses."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class PaymentMethod:
    BANK_TRANSFER = 'bank_transfer'


class TransactionType:
    """Ledger entry types for payment_transactions."""
    TASK_PAYMENT = 'payment'


class Designation:
    """Worker designation levels derived from rating."""
    L1 = 'L1'
    L2 = 'L2'
    L3 = 'L3'
