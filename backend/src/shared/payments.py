"""
Payment Recorder for manual bank transfers.

One payment record exists per (task, worker, employer): its id is derived
from the triple, and creation is a conditional put, so repeated initiation
returns the same record.

    pending_details → processing → completed

A payment completes only with an attached, non-rejected transaction proof.
Completion, proof approval, the wallet credit and the ledger row commit in one
transaction.

Workers maintain their own payout bank details here; a payment cannot take a
proof until those details are complete.
"""
import re
import uuid
from decimal import Decimal
from typing import Any, Dict, Optional

from . import dynamo, tasks, worker_status
from .config import config
from .exceptions import ConflictError, Forbidden, IllegalTransition, NotFound, ValidationError
from .logging import logger
from .models import PaymentMethod, PaymentStatus, ProofStatus, Role, TransactionType
from .utils import is_blank, to_decimal, utc_now_iso

BANK_DETAIL_PLACEHOLDER = 'Not provided'
REQUIRED_BANK_FIELDS = ('accountHolderName', 'bankName', 'accountNumber', 'ifscCode')

IFSC_PATTERN = re.compile(r'^[A-Z]{4}0[A-Z0-9]{6}$')
ACCOUNT_NUMBER_PATTERN = re.compile(r'^[0-9]{8,18}$')
UPI_PATTERN = re.compile(r'^[\w.-]+@[\w.-]+$')

RECENT_TRANSACTIONS = 10

_PAYMENT_NAMESPACE = uuid.UUID('6f1c5a2e-8d3b-4c7a-9e1f-2b4d6a8c0e13')


def payment_id_for(task_id: str, worker_id: str, employer_id: str) -> str:
    """Deterministic payment id for a (task, worker, employer) triple."""
    return str(uuid.uuid5(_PAYMENT_NAMESPACE, f"{task_id}:{worker_id}:{employer_id}"))


def is_bank_details_complete(details: Optional[Dict[str, Any]]) -> bool:
    """All required bank fields present, non-blank and not the placeholder."""
    if not details:
        return False
    for field in REQUIRED_BANK_FIELDS:
        value = details.get(field)
        if is_blank(value) or str(value).strip() == BANK_DETAIL_PLACEHOLDER:
            return False
    return True


def get_bank_details(worker_id: str) -> Optional[Dict[str, Any]]:
    return dynamo.get_item(config.WORKER_BANK_DETAILS_TABLE, {'workerId': worker_id})


def _bank_field(data: Dict[str, Any], field: str, required: bool = True) -> Optional[str]:
    value = data.get(field)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    if is_blank(value):
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    value = value.strip()
    if value == BANK_DETAIL_PLACEHOLDER:
        raise ValidationError(f"{field} cannot be '{BANK_DETAIL_PLACEHOLDER}'", field=field)
    return value


def save_bank_details(worker_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create or replace a worker's payout bank details.

    IFSC codes are stored upper-cased. Saving never touches existing payment
    records; complete details are picked up when a proof is attached.

    Raises:
        Forbidden: the profile is not a worker
        ValidationError: a required field is blank, the placeholder, or malformed
    """
    profile = worker_status.get_profile(worker_id)
    if profile.get('role') != Role.WORKER:
        raise Forbidden("Only workers have payout bank details")

    details = {field: _bank_field(data, field) for field in REQUIRED_BANK_FIELDS}
    details['ifscCode'] = details['ifscCode'].upper()
    if not ACCOUNT_NUMBER_PATTERN.match(details['accountNumber']):
        raise ValidationError("Account number must be 8 to 18 digits", field='accountNumber')
    if not IFSC_PATTERN.match(details['ifscCode']):
        raise ValidationError("Invalid IFSC code format (e.g. SBIN0001234)", field='ifscCode')

    for field in ('branchName', 'upiId'):
        value = _bank_field(data, field, required=False)
        if value is not None:
            details[field] = value
    if 'upiId' in details and not UPI_PATTERN.match(details['upiId']):
        raise ValidationError("UPI id must look like name@bank", field='upiId')

    existing = get_bank_details(worker_id)
    timestamp = utc_now_iso()
    record = {
        'workerId': worker_id,
        **details,
        'isActive': True,
        'createdAt': existing.get('createdAt', timestamp) if existing else timestamp,
        'updatedAt': timestamp,
    }
    dynamo.put_item(config.WORKER_BANK_DETAILS_TABLE, record)

    logger.info(f"Bank details {'updated' if existing else 'added'} for worker {worker_id}")
    return {'bankDetails': record, 'created': not existing}


def mask_account_number(account_number: Optional[str]) -> Optional[str]:
    if not account_number:
        return account_number
    return '*' * max(len(account_number) - 4, 0) + account_number[-4:]


def get_payment_record(payment_id: str) -> Dict[str, Any]:
    payment = dynamo.get_item(config.TASK_PAYMENT_RECORDS_TABLE, {'paymentId': payment_id})
    if not payment:
        raise NotFound(f"Payment {payment_id} not found", paymentId=payment_id)
    return payment


def get_proof(payment_id: str) -> Optional[Dict[str, Any]]:
    return dynamo.get_item(config.TRANSACTION_PROOFS_TABLE, {'paymentId': payment_id})


def get_payment(payment_id: str) -> Dict[str, Any]:
    """Payment record together with its proof (if any)."""
    return {'payment': get_payment_record(payment_id), 'proof': get_proof(payment_id)}


def _check_owner(payment: Dict[str, Any], actor_id: str, as_admin: bool):
    if not as_admin and payment.get('employerId') != actor_id:
        raise Forbidden("Only the paying employer can update this payment")


def _reuse(existing: Dict[str, Any]) -> Dict[str, Any]:
    if existing.get('paymentStatus') == PaymentStatus.COMPLETED:
        raise IllegalTransition(
            "Payment for this task and worker is already completed",
            paymentId=existing['paymentId']
        )
    logger.info(f"Reusing payment {existing['paymentId']} ({existing.get('paymentStatus')})")
    return {'payment': existing, 'reused': True}


def initiate(task_id: str, worker_id: str, employer_id: str, amount: Any) -> Dict[str, Any]:
    """
    Create (or return) the payment record for a task/worker/employer triple.

    Raises:
        ValidationError: non-positive amount
        Forbidden: task not owned by the employer
        IllegalTransition: the triple was already paid
    """
    amount = to_decimal(amount, 'amount')
    if amount <= 0:
        raise ValidationError("amount must be positive", field='amount')
    if is_blank(worker_id):
        raise ValidationError("workerId is required", field='workerId')

    task = tasks.get_task(task_id)
    if task.get('employerId') != employer_id:
        raise Forbidden("Only the task owner can pay for it")

    payment_id = payment_id_for(task_id, worker_id, employer_id)
    existing = dynamo.get_item(config.TASK_PAYMENT_RECORDS_TABLE, {'paymentId': payment_id})
    if existing:
        return _reuse(existing)

    bank_complete = is_bank_details_complete(get_bank_details(worker_id))
    timestamp = utc_now_iso()
    item = {
        'paymentId': payment_id,
        'taskId': task_id,
        'workerId': worker_id,
        'employerId': employer_id,
        'amount': amount,
        'paymentStatus': PaymentStatus.PROCESSING if bank_complete else PaymentStatus.PENDING_DETAILS,
        'paymentMethod': PaymentMethod.BANK_TRANSFER,
        'createdAt': timestamp,
        'updatedAt': timestamp,
    }

    try:
        dynamo.put_item(
            config.TASK_PAYMENT_RECORDS_TABLE,
            item,
            condition_expression='attribute_not_exists(paymentId)'
        )
    except ConflictError:
        return _reuse(get_payment_record(payment_id))

    logger.info(f"Initiated payment {payment_id} of {amount} to {worker_id} ({item['paymentStatus']})")
    return {'payment': item, 'reused': False}


def attach_proof(
    payment_id: str,
    employer_id: str,
    file_path: str,
    file_name: str,
    claimed_reference: str,
    as_admin: bool = False
) -> Dict[str, Any]:
    """
    Attach a bank-transfer proof. A payment waiting on bank details moves to
    processing in the same transaction.

    Raises:
        ValidationError: missing file/reference or incomplete worker bank details
        IllegalTransition: payment completed or a live proof already attached
    """
    if is_blank(file_path) or is_blank(file_name):
        raise ValidationError("filePath and fileName are required")
    if is_blank(claimed_reference):
        raise ValidationError("Transaction reference is required", field='claimedReference')

    payment = get_payment_record(payment_id)
    _check_owner(payment, employer_id, as_admin)
    if payment.get('paymentStatus') == PaymentStatus.COMPLETED:
        raise IllegalTransition("Payment is already completed", paymentId=payment_id)

    if not is_bank_details_complete(get_bank_details(payment['workerId'])):
        raise ValidationError(
            "Worker bank details are incomplete",
            workerId=payment['workerId']
        )

    existing = get_proof(payment_id)
    if existing and existing.get('reviewStatus') != ProofStatus.REJECTED:
        raise IllegalTransition(
            f"A {existing.get('reviewStatus')} proof is already attached",
            paymentId=payment_id
        )

    timestamp = utc_now_iso()
    proof = {
        'paymentId': payment_id,
        'workerId': payment['workerId'],
        'employerId': payment['employerId'],
        'filePath': file_path,
        'fileName': file_name,
        'claimedReference': claimed_reference.strip(),
        'reviewStatus': ProofStatus.PENDING,
        'uploadedBy': employer_id,
        'createdAt': timestamp,
        'updatedAt': timestamp,
    }
    if existing:
        proof_op = dynamo.put_op(
            config.TRANSACTION_PROOFS_TABLE,
            proof,
            condition='reviewStatus = :rejected',
            values={':rejected': ProofStatus.REJECTED}
        )
    else:
        proof_op = dynamo.put_op(
            config.TRANSACTION_PROOFS_TABLE,
            proof,
            condition='attribute_not_exists(paymentId)'
        )

    dynamo.transact_write([
        proof_op,
        dynamo.update_op(
            config.TASK_PAYMENT_RECORDS_TABLE,
            {'paymentId': payment_id},
            'SET paymentStatus = :processing, externalTransactionId = :ref, updatedAt = :ts',
            {
                ':processing': PaymentStatus.PROCESSING,
                ':details': PaymentStatus.PENDING_DETAILS,
                ':ref': proof['claimedReference'],
                ':ts': timestamp,
            },
            condition='paymentStatus IN (:details, :processing)'
        ),
    ])

    logger.info(f"Proof attached to payment {payment_id} (ref {proof['claimedReference']})")
    record = {
        **payment,
        'paymentStatus': PaymentStatus.PROCESSING,
        'externalTransactionId': proof['claimedReference'],
        'updatedAt': timestamp,
    }
    return {'payment': record, 'proof': proof}


def complete(payment_id: str, actor_id: str, as_admin: bool = False) -> Dict[str, Any]:
    """
    Mark a processing payment completed, approve its proof, credit the
    worker's wallet and write the ledger row, atomically.

    Raises:
        IllegalTransition: payment not processing, or no usable proof
        ConflictError: the payment or proof changed concurrently
    """
    payment = get_payment_record(payment_id)
    _check_owner(payment, actor_id, as_admin)

    status = payment.get('paymentStatus')
    if status != PaymentStatus.PROCESSING:
        raise IllegalTransition(f"Payment is {status}, not processing", paymentId=payment_id, status=status)

    proof = get_proof(payment_id)
    if not proof or proof.get('reviewStatus') == ProofStatus.REJECTED:
        raise IllegalTransition("A transaction proof is required to complete payment", paymentId=payment_id)

    timestamp = utc_now_iso()
    amount = payment['amount']
    worker_id = payment['workerId']
    ledger = {
        'transactionId': str(uuid.uuid5(_PAYMENT_NAMESPACE, f"ledger:{payment_id}")),
        'userId': worker_id,
        'type': TransactionType.TASK_PAYMENT,
        'amount': amount,
        'paymentId': payment_id,
        'taskId': payment['taskId'],
        'status': PaymentStatus.COMPLETED,
        'description': f"Payment for task {payment['taskId']}",
        'reference': proof.get('claimedReference'),
        'createdAt': timestamp,
    }

    dynamo.transact_write([
        dynamo.update_op(
            config.TASK_PAYMENT_RECORDS_TABLE,
            {'paymentId': payment_id},
            'SET paymentStatus = :completed, completedAt = :ts, completedBy = :actor, updatedAt = :ts',
            {
                ':completed': PaymentStatus.COMPLETED,
                ':processing': PaymentStatus.PROCESSING,
                ':actor': actor_id,
                ':ts': timestamp,
            },
            condition='paymentStatus = :processing'
        ),
        dynamo.update_op(
            config.TRANSACTION_PROOFS_TABLE,
            {'paymentId': payment_id},
            'SET reviewStatus = :approved, reviewedBy = :actor, reviewedAt = :ts, updatedAt = :ts',
            {
                ':approved': ProofStatus.APPROVED,
                ':observed': proof.get('reviewStatus'),
                ':actor': actor_id,
                ':ts': timestamp,
            },
            condition='reviewStatus = :observed'
        ),
        dynamo.update_op(
            config.WALLET_BALANCES_TABLE,
            {'userId': worker_id},
            'ADD totalEarned :amount, availableBalance :amount SET updatedAt = :ts',
            {':amount': amount, ':ts': timestamp}
        ),
        dynamo.put_op(
            config.PAYMENT_TRANSACTIONS_TABLE,
            ledger,
            condition='attribute_not_exists(transactionId)'
        ),
    ])

    logger.info(f"Payment {payment_id} completed: {amount} credited to {worker_id}")
    record = {
        **payment,
        'paymentStatus': PaymentStatus.COMPLETED,
        'completedAt': timestamp,
        'completedBy': actor_id,
        'updatedAt': timestamp,
    }
    return {
        'payment': record,
        'proof': {**proof, 'reviewStatus': ProofStatus.APPROVED, 'reviewedBy': actor_id, 'reviewedAt': timestamp},
        'transaction': ledger,
    }


def reject_proof(payment_id: str, actor_id: str, notes: Optional[str] = None) -> Dict[str, Any]:
    """Reject a pending proof so the employer can attach a new one."""
    payment = get_payment_record(payment_id)
    if payment.get('paymentStatus') == PaymentStatus.COMPLETED:
        raise IllegalTransition("Payment is already completed", paymentId=payment_id)

    proof = get_proof(payment_id)
    if not proof:
        raise NotFound(f"No proof attached to payment {payment_id}", paymentId=payment_id)
    if proof.get('reviewStatus') != ProofStatus.PENDING:
        raise IllegalTransition(
            f"Proof is {proof.get('reviewStatus')}, not pending",
            paymentId=payment_id
        )

    timestamp = utc_now_iso()
    set_clause = 'SET reviewStatus = :rejected, reviewedBy = :actor, reviewedAt = :ts, updatedAt = :ts'
    values = {
        ':rejected': ProofStatus.REJECTED,
        ':pending': ProofStatus.PENDING,
        ':actor': actor_id,
        ':ts': timestamp,
    }
    if notes:
        set_clause += ', reviewNotes = :notes'
        values[':notes'] = notes

    dynamo.update_item(
        config.TRANSACTION_PROOFS_TABLE,
        {'paymentId': payment_id},
        set_clause,
        values,
        condition_expression='reviewStatus = :pending'
    )
    logger.info(f"Proof for payment {payment_id} rejected by {actor_id}")

    record = {**proof, 'reviewStatus': ProofStatus.REJECTED, 'reviewedBy': actor_id, 'reviewedAt': timestamp}
    if notes:
        record['reviewNotes'] = notes
    return record


def worker_earnings(worker_id: str, limit: int = RECENT_TRANSACTIONS) -> Dict[str, Any]:
    """
    Earnings summary for a worker: wallet totals, the sum of payments not yet
    completed, and the most recent ledger rows.
    """
    wallet = dynamo.get_item(config.WALLET_BALANCES_TABLE, {'userId': worker_id}) or {}
    payments = dynamo.query_index(
        config.TASK_PAYMENT_RECORDS_TABLE, 'workerId', worker_id, index_name='WorkerIndex'
    )
    ledger = dynamo.query_index(
        config.PAYMENT_TRANSACTIONS_TABLE, 'userId', worker_id, index_name='UserIndex'
    )
    ledger.sort(key=lambda row: row.get('createdAt', ''), reverse=True)

    outstanding = [p for p in payments if p.get('paymentStatus') != PaymentStatus.COMPLETED]
    return {
        'workerId': worker_id,
        'availableBalance': wallet.get('availableBalance', 0),
        'totalEarned': wallet.get('totalEarned', 0),
        'pendingPayments': sum((Decimal(str(p.get('amount', 0))) for p in outstanding), Decimal('0')),
        'pendingPaymentCount': len(outstanding),
        'completedPaymentCount': len(payments) - len(outstanding),
        'hasBankDetails': is_bank_details_complete(get_bank_details(worker_id)),
        'recentTransactions': ledger[:limit],
    }
