from portal.client.notification_poller import NotificationPoller
from portal.client.submission_flow import SubmissionError, SubmissionFlow, SubmissionInProgress
