from dataclasses import asdict

from fastapi import APIRouter, HTTPException, status

from ..config import get_settings
from ..digest import DigestNotConfigured, run_configured_digest
from ..exceptions import TransportFailure, UpstreamFailure

router = APIRouter()


def verify_secret(secret: str) -> None:
    settings = get_settings()
    if not settings.digest_secret or secret != settings.digest_secret:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.post("/run/{secret}")
async def run_digest_endpoint(secret: str) -> dict[str, object]:
    """Trigger for an external scheduler (e.g. an hourly cron)."""
    verify_secret(secret)
    try:
        report = await run_configured_digest()
    except DigestNotConfigured as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except (UpstreamFailure, TransportFailure) as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return {"message": "Client info and transactions sent successfully", **asdict(report)}
