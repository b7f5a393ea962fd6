"""Exceptions raised at the lifecycle boundary; messages are shown to the user as-is"""


class InfopubError(Exception):
    """Base class for user-visible failures."""


class PageNotFound(InfopubError, KeyError):
    """Raised when a page id or slug does not resolve to a stored page."""

    def __str__(self) -> str:
        return self.args[0] if self.args else "Page not found"


class StoreError(InfopubError):
    """Raised when the persistent store rejects a read or write."""


class PublishRefused(InfopubError):
    """Raised when the publish check reports at least one error.

    The full issue list (errors and warnings) is kept on ``issues``.
    """

    def __init__(self, issues):
        self.issues = list(issues)
        count = sum(1 for i in self.issues if i.blocking)
        super().__init__(f"Publish check found {count} error(s); fix them before publishing.")


class PublishLimitReached(InfopubError):
    """Raised when publishing would exceed the plan's published-page ceiling."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Published page limit reached ({limit}). Upgrade your plan to publish more pages.")


class SubscriptionInactive(InfopubError):
    """Raised when the tenant's subscription status does not allow publishing."""


class BillingError(InfopubError):
    """Raised when the payment provider fails to open a checkout or portal session."""


class GraphReadOnly(InfopubError):
    """Raised when a page that follows another page's map tries to edit it."""
