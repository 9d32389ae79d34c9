"""Database reads and writes used by the request handlers.

Every helper commits its own unit of work. Callers that treat persistence as
best-effort catch `SQLAlchemyError` around these calls and roll back.
"""
import uuid

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from models import db, User, Generation, ContactMessage, Subscription, Invoice, utcnow

PLACEHOLDER_EMAIL = 'user@example.com'
PLACEHOLDER_FIRST_NAME = 'User'
PLACEHOLDER_LAST_NAME = 'Name'

_UPSERT_INSERTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


# --- Users ---
def find_user(subject_id):
    return db.session.execute(
        select(User).filter_by(subject_id=subject_id)
    ).scalar_one_or_none()


def get_or_create_user(subject_id, email=None, first_name=None, last_name=None):
    """Get the user for an identity-provider subject, creating it on first sight.

    The insert is a single `INSERT ... ON CONFLICT (subject_id) DO NOTHING`, so
    two first requests racing for the same subject still produce one row.
    """
    values = {
        'subject_id': subject_id,
        'email': email or PLACEHOLDER_EMAIL,
        'first_name': first_name or PLACEHOLDER_FIRST_NAME,
        'last_name': last_name or PLACEHOLDER_LAST_NAME,
        'created_at': utcnow(),
    }

    insert = _UPSERT_INSERTS.get(db.engine.dialect.name)
    if insert is not None:
        stmt = insert(User).values(**values).on_conflict_do_nothing(index_elements=['subject_id'])
        db.session.execute(stmt)
        db.session.commit()
    else:
        # Dialects without ON CONFLICT fall back on the unique constraint
        try:
            db.session.add(User(**values))
            db.session.commit()
        except IntegrityError:
            db.session.rollback()

    return find_user(subject_id)


# --- Generations ---
def save_generation(user, capability, prompt, input_payload=None, output=None, metadata=None):
    generation = Generation(
        user_id=user.id,
        capability=capability,
        prompt=prompt,
        input=input_payload,
        output=output,
        meta=metadata or {},
    )
    db.session.add(generation)
    db.session.commit()
    return generation


def list_generations(user_id, capability):
    """All generations of one capability for a user, newest first"""
    return db.session.execute(
        select(Generation)
        .filter_by(user_id=user_id, capability=capability)
        .order_by(Generation.created_at.desc(), Generation.id.desc())
    ).scalars().all()


# --- Contact messages ---
def create_contact_message(first_name, last_name, email, phone, message, user=None):
    contact = ContactMessage(
        user_id=user.id if user else None,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        message=message,
    )
    db.session.add(contact)
    db.session.commit()
    return contact


# --- Subscriptions ---
def latest_subscription(user_id):
    return db.session.execute(
        select(Subscription)
        .filter_by(user_id=user_id)
        .order_by(Subscription.start_date.desc(), Subscription.id.desc())
        .limit(1)
    ).scalar_one_or_none()


def cancel_subscription(subscription):
    """Mark a subscription cancelled, ending it now.

    Unconditional overwrite: cancelling an already cancelled subscription
    moves its end date forward and leaves the status unchanged.
    """
    now = utcnow()
    subscription.status = 'cancelled'
    subscription.end_date = now
    subscription.updated_at = now
    db.session.commit()
    return subscription


def create_subscription(user, plan, amount, paypal_order_id=None, currency='USD'):
    subscription = Subscription(
        user_id=user.id,
        plan=plan,
        status='active',
        amount=amount,
        currency=currency,
        start_date=utcnow(),
        paypal_order_id=paypal_order_id,
    )
    db.session.add(subscription)
    db.session.commit()
    return subscription


def generate_invoice_number():
    return f"INV-{utcnow():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def create_invoice(user, subscription, amount, invoice_json, paypal_payment_id=None, currency='USD'):
    now = utcnow()
    invoice = Invoice(
        user_id=user.id,
        subscription_id=subscription.id,
        amount=amount,
        currency=currency,
        status='paid',
        invoice_number=generate_invoice_number(),
        invoice_date=now,
        paid_at=now,
        invoice_json=invoice_json,
        paypal_payment_id=paypal_payment_id,
    )
    db.session.add(invoice)
    db.session.commit()
    return invoice
