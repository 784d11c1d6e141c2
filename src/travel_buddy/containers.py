"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import Client, create_client
from supabase.client import ClientOptions

from travel_buddy.adapters.azure_face_client import HttpxFaceClient
from travel_buddy.adapters.smtp_join_request_notifier import SmtpJoinRequestNotifier
from travel_buddy.adapters.supabase_credential_provider import (
    SupabaseCredentialProvider,
)
from travel_buddy.adapters.supabase_image_store import SupabaseImageStore
from travel_buddy.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from travel_buddy.adapters.supabase_trip_repository import SupabaseTripRepository
from travel_buddy.config import Settings
from travel_buddy.services.auth import AuthService
from travel_buddy.services.face_match import FaceMatchService
from travel_buddy.services.flow_gate import FlowGate
from travel_buddy.services.images import ImageService
from travel_buddy.services.profiles import ProfileService
from travel_buddy.services.trips import TripService
from travel_buddy.services.verification import VerificationService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    auth_service: AuthService
    profile_service: ProfileService
    image_service: ImageService
    face_match_service: FaceMatchService
    verification_service: VerificationService
    flow_gate: FlowGate
    trip_service: TripService
    close_resources: Callable[[], Awaitable[None]]


def session_client_factory(settings: Settings) -> Callable[[], Client]:
    """Return a factory of short-lived clients for password sign-in.

    Each client gets its own options object, since a sign-in writes the
    user's token into the options headers of the client it runs on.
    """

    def create() -> Client:
        return create_client(
            settings.supabase_url,
            settings.supabase_service_key,
            options=ClientOptions(persist_session=False, auto_refresh_token=False),
        )

    return create


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_service_key,
        options=ClientOptions(persist_session=False, auto_refresh_token=False),
    )
    credential_provider = SupabaseCredentialProvider(
        supabase_client, session_client_factory(resolved_settings)
    )
    profile_repository = SupabaseProfileRepository(
        supabase_client, table=resolved_settings.profiles_table
    )
    image_store = SupabaseImageStore(
        supabase_client, bucket=resolved_settings.image_bucket
    )
    trip_repository = SupabaseTripRepository(
        supabase_client, table=resolved_settings.trips_table
    )
    notifier = SmtpJoinRequestNotifier(
        host=resolved_settings.smtp_host,
        sender=resolved_settings.mail_from,
        port=resolved_settings.smtp_port,
        user=resolved_settings.smtp_user,
        password=resolved_settings.smtp_password,
        use_tls=resolved_settings.smtp_use_tls,
        timeout_seconds=resolved_settings.smtp_timeout_seconds,
    )
    face_client = HttpxFaceClient.create(
        endpoint=resolved_settings.face_api_base_url,
        api_key=resolved_settings.face_api_key,
        timeout_seconds=resolved_settings.face_api_timeout_seconds,
    )
    auth_service = AuthService(credential_provider)
    profile_service = ProfileService(profile_repository)
    image_service = ImageService(image_store)
    face_match_service = FaceMatchService(client=face_client, images=image_service)
    verification_service = VerificationService(
        face_match=face_match_service,
        profiles=profile_service,
        images=image_service,
    )
    flow_gate = FlowGate(auth=auth_service, profiles=profile_service)
    trip_service = TripService(
        trips=trip_repository, profiles=profile_service, notifier=notifier
    )

    async def close_resources() -> None:
        await face_client.close()

    return AppContainer(
        settings=resolved_settings,
        auth_service=auth_service,
        profile_service=profile_service,
        image_service=image_service,
        face_match_service=face_match_service,
        verification_service=verification_service,
        flow_gate=flow_gate,
        trip_service=trip_service,
        close_resources=close_resources,
    )
