"""Notification modules for SNS messaging."""

from resource_reaper.notifications.sns_notifier import SNSNotifier

__all__ = ["SNSNotifier"]
