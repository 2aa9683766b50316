from portal.database.models.admin_model import AdminUser
from portal.database.models.audit_log_model import AuditLog
from portal.database.models.notification_model import Notification
from portal.database.models.payment_model import Payment
from portal.database.models.service_application_model import ServiceApplication, DocumentMetadata

DOCUMENT_MODELS = [ServiceApplication, Payment, Notification, AdminUser, AuditLog]
