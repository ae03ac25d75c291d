from ciwatch.events.models import ConfigChangedEvent, Event, ServiceCheck

__all__ = ("ConfigChangedEvent", "Event", "ServiceCheck")
