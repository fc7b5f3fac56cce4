"""Order notifier: transactional e-mail notifications for the online store."""

__version__ = "1.0.0"
