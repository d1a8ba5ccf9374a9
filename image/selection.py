"""Choose the model that will actually serve an image request."""
from dataclasses import dataclass
from typing import Mapping, Optional

from config import ProviderCredentials
from common.error_messages import ErrorCode, ServiceError, missing_credential_error
from image.catalog import MODELS, ModelDescriptor, ProviderFamily, get_model
from utils.logger import get_logger

logger = get_logger("image.selection")


@dataclass(frozen=True)
class ModelSelection:
    model: ModelDescriptor
    switched: bool = False
    reason: Optional[str] = None


def _credential_alternative(
    model: ModelDescriptor,
    credentials: ProviderCredentials,
    has_reference_image: bool,
    catalog: Mapping[str, ModelDescriptor],
) -> ModelDescriptor:
    """Best same-or-lower tier model whose provider has a credential."""
    order = {model_id: index for index, model_id in enumerate(catalog)}
    candidates = [
        m for m in catalog.values()
        if m.family.tier <= model.family.tier and m.family.is_available(credentials)
    ]
    if not candidates:
        raise missing_credential_error(model.family.credential)

    def rank(m: ModelDescriptor):
        capability_miss = has_reference_image and not m.supports_reference_image
        return (-m.family.tier, capability_miss, not m.recommended, order[m.id])

    return min(candidates, key=rank)


def _reference_fallback(
    credentials: ProviderCredentials,
    catalog: Mapping[str, ModelDescriptor],
) -> Optional[ModelDescriptor]:
    """Designated image-editing fallback: OpenAI when keyed, else the free gateway."""
    preference = [ProviderFamily.FIRST_PARTY_IMAGE, ProviderFamily.FREE_PUBLIC_GATEWAY]
    for family in preference:
        if not family.is_available(credentials):
            continue
        capable = [m for m in catalog.values() if m.family == family and m.supports_reference_image]
        if capable:
            capable.sort(key=lambda m: not m.recommended)
            return capable[0]
    return None


def select_model(
    requested: Optional[str],
    credentials: ProviderCredentials,
    has_reference_image: bool = False,
    catalog: Mapping[str, ModelDescriptor] = MODELS,
    default: Optional[str] = None,
) -> ModelSelection:
    """
    Decide which model serves the request.

    Unknown or missing identifiers resolve to the default model. A model whose
    provider credential is absent is replaced by the best lower-tier model that
    is usable; a model that cannot take a reference image is replaced by the
    designated editing fallback when one is supplied.

    Raises:
        ServiceError: CAPABILITY_UNAVAILABLE when a reference image is given
            and no editing-capable model can be used; MISSING_API_KEY when no
            usable model exists at all.
    """
    model = get_model(requested, catalog, default)
    unknown_note = None
    if requested and requested != model.id:
        logger.info(f"Unknown model '{requested}', using default '{model.id}'")
        unknown_note = f"unknown model '{requested}' resolved to {model.id}"

    reasons = []

    if not model.family.is_available(credentials):
        alternative = _credential_alternative(model, credentials, has_reference_image, catalog)
        reasons.append(
            f"{model.id} requires a {model.family.credential} credential which is not configured; "
            f"using {alternative.id}"
        )
        model = alternative

    if has_reference_image and not model.supports_reference_image:
        fallback = _reference_fallback(credentials, catalog)
        if fallback is None:
            raise ServiceError(
                ErrorCode.CAPABILITY_UNAVAILABLE,
                details=f"{model.id} does not support reference images and no editing model is configured",
            )
        reasons.append(f"{model.id} does not support reference images; using {fallback.id}")
        model = fallback

    if reasons:
        if unknown_note:
            reasons.insert(0, unknown_note)
        reason = "; ".join(reasons)
        logger.info(f"Model switched: {reason}")
        return ModelSelection(model=model, switched=True, reason=reason)
    return ModelSelection(model=model)
