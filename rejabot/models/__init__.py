from .base import Base
from .task import Task
from .expense import Expense, BudgetLimit
from .goal import Goal
from .user_settings import UserSettings
from .prayer import PrayerSettings, PrayerTimes
from .subscription import Subscription

__all__ = ["Base","Task","Expense","BudgetLimit","Goal","UserSettings","PrayerSettings","PrayerTimes","Subscription"]
