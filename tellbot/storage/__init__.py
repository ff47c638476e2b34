"""基于SQLite的持久化层：活动记录与留言箱。"""

from tellbot.storage.activity import ActivityRecord, ActivityTracker
from tellbot.storage.database import Database
from tellbot.storage.mailbox import MailboxEntry, MailboxStore

__all__ = ["Database", "ActivityTracker", "ActivityRecord", "MailboxStore", "MailboxEntry"]
