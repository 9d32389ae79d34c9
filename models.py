from flask_sqlalchemy import SQLAlchemy
from datetime import datetime, timezone

db = SQLAlchemy()

GENERATION_TYPES = ('image', 'video', 'audio', 'code', 'conversation')
SUBSCRIPTION_STATUSES = ('active', 'cancelled', 'expired', 'past_due')


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    subject_id = db.Column(db.String(255), unique=True, nullable=False)
    email = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(255))
    last_name = db.Column(db.String(255))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    # Relationships
    generations = db.relationship('Generation', backref='user', lazy=True, cascade='all, delete-orphan')
    subscriptions = db.relationship('Subscription', backref='user', lazy=True, cascade='all, delete-orphan')
    contact_messages = db.relationship('ContactMessage', backref='user', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'subjectId': self.subject_id,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'createdAt': _iso(self.created_at),
        }


class Generation(db.Model):
    """One stored AI interaction, tagged with the capability that produced it"""
    __tablename__ = 'generations'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    capability = db.Column(db.String(20), nullable=False, index=True)
    prompt = db.Column(db.Text, nullable=False)
    input = db.Column(db.JSON)
    output = db.Column(db.JSON)
    # `metadata` is reserved on declarative models
    meta = db.Column('metadata', db.JSON, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'type': self.capability,
            'prompt': self.prompt,
            'input': self.input,
            'output': self.output,
            'metadata': self.meta or {},
            'createdAt': _iso(self.created_at),
        }


class ContactMessage(db.Model):
    __tablename__ = 'contact_messages'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    first_name = db.Column(db.String(255), nullable=False)
    last_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(50), nullable=False)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='new')
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'email': self.email,
            'phone': self.phone,
            'message': self.message,
            'status': self.status,
            'createdAt': _iso(self.created_at),
        }


class Subscription(db.Model):
    __tablename__ = 'subscriptions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    plan = db.Column(db.String(20), nullable=False, default='free')
    status = db.Column(db.String(20), nullable=False, default='active')
    amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default='USD')
    start_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    end_date = db.Column(db.DateTime(timezone=True), nullable=True)
    paypal_order_id = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    invoices = db.relationship('Invoice', backref='subscription', lazy=True, cascade='all, delete-orphan')

    def is_active(self):
        """Active and not past its end date"""
        if self.status != 'active':
            return False
        if not self.end_date:
            return True
        end_date = self.end_date
        if end_date.tzinfo is None:
            end_date = end_date.replace(tzinfo=timezone.utc)
        return utcnow() < end_date

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'plan': self.plan,
            'status': self.status,
            'amount': float(self.amount) if self.amount is not None else 0.0,
            'currency': self.currency,
            'startDate': _iso(self.start_date),
            'endDate': _iso(self.end_date),
            'paypalOrderId': self.paypal_order_id,
        }


class Invoice(db.Model):
    __tablename__ = 'invoices'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    subscription_id = db.Column(db.Integer, db.ForeignKey('subscriptions.id'), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default='USD')
    status = db.Column(db.String(20), nullable=False, default='pending')
    invoice_number = db.Column(db.String(64), unique=True, nullable=False)
    invoice_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    invoice_json = db.Column(db.JSON, nullable=False)
    paypal_payment_id = db.Column(db.String(255))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
