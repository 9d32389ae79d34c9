from datetime import datetime, timezone

from flask import current_app
from flask_mail import Mail, Message
from markupsafe import escape

mail = Mail()

CONTACT_TEMPLATE = """
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2 style="background-color: #4a5568; color: white; padding: 20px; text-align: center;">
      New Contact Message - NexusAI
    </h2>
    <p><strong>Name:</strong> {first_name} {last_name}</p>
    <p><strong>Email:</strong> {email}</p>
    <p><strong>Phone:</strong> {phone}</p>
    <p><strong>Message:</strong><br>{message}</p>
    <p><strong>Submitted On:</strong> {submitted_at}</p>
  </div>
</body>
</html>
"""


def contact_email_html(contact):
    fields = {key: escape(contact.get(key, '')) for key in ('first_name', 'last_name', 'email', 'phone', 'message')}
    fields['submitted_at'] = contact.get('submitted_at') or datetime.now(timezone.utc).isoformat()
    return CONTACT_TEMPLATE.format(**fields)


def send_contact_email(contact):
    """Forward a contact form submission to the site owner.

    Returns True on success. Failures are logged and reported as False so the
    caller can decide whether they matter.
    """
    recipient = current_app.config.get('OWNER_EMAIL')
    if not recipient:
        current_app.logger.error("❌ OWNER_EMAIL not configured, contact email not sent")
        return False

    try:
        msg = Message(
            subject=f"New Contact Message from {contact['first_name']} {contact['last_name']}",
            sender=("NexusAI Contact Form", current_app.config.get('MAIL_DEFAULT_SENDER')),
            recipients=[recipient],
            reply_to=contact['email'],
        )
        msg.body = f"""
New Contact Form Submission

From: {contact['first_name']} {contact['last_name']}
Email: {contact['email']}
Phone: {contact['phone']}

Message:
{contact['message']}

---
Sent from NexusAI Contact Form
        """
        msg.html = contact_email_html(contact)
        mail.send(msg)
        current_app.logger.info(f"✅ Contact email sent for {contact['email']}")
        return True
    except Exception as e:
        # Log error without exposing details
        current_app.logger.error(f"❌ Email sending failed: {type(e).__name__}")
        return False
