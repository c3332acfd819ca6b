from fastapi import APIRouter

from nhl_predictor.services.scheduler import prediction_scheduler

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    return {
        "status": "ok",
        "message": "NHL Predictor API is running",
        "scheduler": prediction_scheduler.get_status()
    }
