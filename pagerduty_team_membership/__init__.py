"""PagerDuty::Teams::Membership — team/user membership lifecycle handlers."""

__version__ = "1.0.0"
