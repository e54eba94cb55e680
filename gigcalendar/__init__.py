"""GigCalendar — band gig scheduling backend with live collection sync."""

__version__ = "1.0.0"
