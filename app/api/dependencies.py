"""
Dependency injection for FastAPI.

Remote clients are created once by the application lifespan and kept on
``app.state``; services are cheap and built per request around them.
"""
from typing import Annotated
from fastapi import Depends, Request

from app.infrastructure.document_store_client import DocumentStoreClient
from app.infrastructure.identity_client import IdentityClient
from app.infrastructure.mail_client import MailClient
from app.infrastructure.media_store_client import MediaStoreClient
from app.infrastructure.plant_identification_client import PlantIdentificationClient
from app.infrastructure.text_generation_client import TextGenerationClient
from app.services.application.listing_service import ListingService
from app.services.application.report_service import ReportService
from app.services.application.tree_service import TreeService
from app.services.application.volunteer_service import VolunteerService


def get_document_store(request: Request) -> DocumentStoreClient:
    return request.app.state.document_store


def get_media_store(request: Request) -> MediaStoreClient:
    return request.app.state.media_store


def get_text_generator(request: Request) -> TextGenerationClient:
    return request.app.state.text_generator


def get_plant_identifier(request: Request) -> PlantIdentificationClient:
    return request.app.state.plant_identifier


def get_identity_client(request: Request) -> IdentityClient:
    return request.app.state.identity


def get_mail_client(request: Request) -> MailClient:
    return request.app.state.mail


def get_tree_service(
    store: Annotated[DocumentStoreClient, Depends(get_document_store)],
    media: Annotated[MediaStoreClient, Depends(get_media_store)],
    text_generator: Annotated[TextGenerationClient, Depends(get_text_generator)],
    plant_identifier: Annotated[PlantIdentificationClient, Depends(get_plant_identifier)],
) -> TreeService:
    """
    Dependency factory for TreeService.

    Args:
        store: Document store client (injected)
        media: Media host client (injected)
        text_generator: Chat-completion client (injected)
        plant_identifier: Plant identification client (injected)

    Returns:
        TreeService instance
    """
    return TreeService(
        store=store,
        media=media,
        text_generator=text_generator,
        plant_identifier=plant_identifier,
    )


def get_listing_service(
    store: Annotated[DocumentStoreClient, Depends(get_document_store)],
) -> ListingService:
    return ListingService(store=store)


def get_volunteer_service(
    identity: Annotated[IdentityClient, Depends(get_identity_client)],
    store: Annotated[DocumentStoreClient, Depends(get_document_store)],
) -> VolunteerService:
    return VolunteerService(identity=identity, store=store)


def get_report_service(
    mail: Annotated[MailClient, Depends(get_mail_client)],
) -> ReportService:
    return ReportService(mail=mail)


# Type aliases for cleaner route signatures
TreeServiceDep = Annotated[TreeService, Depends(get_tree_service)]
ListingServiceDep = Annotated[ListingService, Depends(get_listing_service)]
VolunteerServiceDep = Annotated[VolunteerService, Depends(get_volunteer_service)]
ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]
