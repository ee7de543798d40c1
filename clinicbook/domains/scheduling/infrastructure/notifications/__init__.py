from .email_gateway import EmailNotificationGateway, LoggingNotificationGateway, RecordingNotificationGateway

__all__ = ["EmailNotificationGateway", "LoggingNotificationGateway", "RecordingNotificationGateway"]
