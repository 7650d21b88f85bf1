"""
Exceptions

Error taxonomy shared by the feature registry and the rendering pipeline.
Every error carries a ``context`` dict with diagnostic fields so callers can
log or surface it without parsing the message.
"""

from typing import Any, Dict, Iterable, Optional


class GadgetError(Exception):
    """Base class for all container errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        return self.message


class FeatureError(GadgetError):
    """Raised for a failure tied to a single feature."""

    def __init__(
        self,
        message: str,
        feature: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, context)
        self.feature = feature
        if feature is not None:
            self.context.setdefault('feature', feature)


class FeatureDescriptorError(FeatureError):
    """A feature descriptor file is malformed (startup fatal)."""


class DependencyCycleError(GadgetError):
    """The feature dependency graph contains a cycle (startup fatal)."""

    def __init__(self, pending: Iterable[str]) -> None:
        self.pending = sorted(pending)
        super().__init__(
            "Feature dependency graph contains a cycle among: " + ", ".join(self.pending),
            context={'pending': self.pending}
        )


class MissingScriptFileError(FeatureError):
    """A file-backed script entry could not be read."""

    def __init__(self, path: str, feature: Optional[str] = None) -> None:
        super().__init__(
            f"Missing script file {path} for feature {feature}",
            feature=feature,
            context={'path': path}
        )
        self.path = path


class FetchError(GadgetError):
    """Transport-level failure inside the HTTP collaborator."""


class SpecFetchError(GadgetError):
    """The gadget spec could not be retrieved."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(
            f"Unable to retrieve gadget xml from {url} (HTTP {status_code})",
            context={'url': url, 'status_code': status_code}
        )
        self.url = url
        self.status_code = status_code


class BlacklistedGadgetError(GadgetError):
    """The gadget spec URL is blacklisted."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Gadget is blacklisted: {url}", context={'url': url})
        self.url = url


class SpecParserError(GadgetError):
    """The gadget spec XML is malformed."""


class UnsupportedFeatureError(GadgetError):
    """One or more required features are not registered."""

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Unsupported feature(s): " + ", ".join(self.missing),
            context={'missing': self.missing}
        )


class FeatureProcessingError(FeatureError):
    """A feature processor failed during its prepare or process phase."""

    def __init__(self, feature: str, phase: str, cause: Exception) -> None:
        super().__init__(
            f"Feature {feature} failed during {phase}: {cause}",
            feature=feature,
            context={'phase': phase}
        )
        self.phase = phase
