from fastapi import Depends

from soundsnap.config import Settings, get_settings
from soundsnap.services.asset_store import AssetStore, build_asset_store
from soundsnap.services.fal_client import build_generation_service
from soundsnap.services.lifecycle_supervisor import GenerationService, LifecycleSupervisor


def get_generation_service(config: Settings = Depends(get_settings)) -> GenerationService:
    return build_generation_service(config)


def get_asset_store(config: Settings = Depends(get_settings)) -> AssetStore:
    return build_asset_store(config)


def get_supervisor(
    service: GenerationService = Depends(get_generation_service),
    config: Settings = Depends(get_settings),
) -> LifecycleSupervisor:
    return LifecycleSupervisor(
        service,
        max_attempts=config.submit_max_attempts,
        retry_delay=config.submit_retry_delay_seconds,
    )
