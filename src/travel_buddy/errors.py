"""Error taxonomy for the identity and onboarding services."""


class TravelBuddyError(Exception):
    """Base class for application errors."""


class NoFaceDetected(TravelBuddyError):
    """The face API found zero faces in an image."""


class ServiceError(TravelBuddyError):
    """The face API failed, timed out, or returned an error payload."""


class PersistenceError(TravelBuddyError):
    """A profile record read or write failed."""


class ImageUnavailable(TravelBuddyError):
    """An image could not be stored, loaded, or removed."""


class AuthenticationError(TravelBuddyError):
    """Sign-up, sign-in, or token resolution failed."""


class ProfileNotFound(TravelBuddyError):
    """No profile record exists for the user."""


class IncompleteSubmission(TravelBuddyError):
    """Verification was submitted without both images."""


class VerificationInProgress(TravelBuddyError):
    """A face match is already running for this user."""


class TripNotFound(TravelBuddyError):
    """No trip exists with the requested id."""


class TripPermissionDenied(TravelBuddyError):
    """The user may not perform this action on the trip."""


class BuddyNotFound(TravelBuddyError):
    """No profile is registered under the email given for a buddy."""


class NotificationError(TravelBuddyError):
    """A join request email could not be delivered."""
