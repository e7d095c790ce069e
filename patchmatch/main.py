import base64
import binascii
import logging
import os
import random
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import uvicorn

from patchmatch.analysis.analyzer import analyze
from patchmatch.core.errors import (
    DecodeError,
    InvalidInputError,
    PatchMatchError,
    SilentAudioError,
)
from patchmatch.core.io import AudioIO
from patchmatch.params.resolve import resolve_params
from patchmatch.search.model import estimate_spectrum
from patchmatch.search.session import MatchSession

DEV = os.environ.get("PATCHMATCH_ENV", "production").lower() in ("development", "dev", "test")
DEFAULT_STEPS = int(os.environ.get("PATCHMATCH_STEPS", "50"))

# Configure Logging
logging.basicConfig(level=logging.DEBUG if DEV else logging.INFO)
logger = logging.getLogger("patchmatch")

app = FastAPI(
    title="patchmatch",
    version="0.1.0",
    description="Sample analysis and synth patch matching"
)

# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AnalyzeRequest(BaseModel):
    audio: str  # base64-encoded audio file


class MatchRequest(BaseModel):
    audio: str
    steps: int = Field(default=DEFAULT_STEPS, ge=1, le=5000)
    seed: Optional[int] = None
    vibe: str = "off"
    params: dict = Field(default_factory=dict)


class EstimateRequest(BaseModel):
    params: dict = Field(default_factory=dict)
    fundamental_hz: Optional[float] = None


def _decode(audio_b64: str):
    try:
        payload = base64.b64decode(audio_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"audio is not valid base64: {exc}")
    return AudioIO.load_pcm(payload)


def _error_status(exc: PatchMatchError) -> int:
    if isinstance(exc, SilentAudioError):
        return 422
    return 400


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "patchmatch"}


@app.post("/analyze")
def analyze_sample(req: AnalyzeRequest):
    """
    Analyze a sample.
    Returns the feature descriptor (without spectra).
    """
    try:
        descriptor = analyze(_decode(req.audio))
    except (InvalidInputError, DecodeError, SilentAudioError) as exc:
        logger.warning("[API] analyze rejected: %s", exc)
        raise HTTPException(status_code=_error_status(exc), detail=str(exc))
    return descriptor.to_dict()


@app.post("/match")
def match_sample(req: MatchRequest):
    """
    Analyze a sample, seed a session from it and anneal.
    Returns descriptor, best params (with vibe overlay) and energies.
    """
    try:
        descriptor = analyze(_decode(req.audio))
    except (InvalidInputError, DecodeError, SilentAudioError) as exc:
        logger.warning("[API] match rejected: %s", exc)
        raise HTTPException(status_code=_error_status(exc), detail=str(exc))

    session = MatchSession(req.params)
    session.configure(descriptor)
    session.set_vibe(req.vibe)
    rng = random.Random(req.seed) if req.seed is not None else None
    result = session.run_annealing(steps=req.steps, rng=rng)

    return {
        "descriptor": descriptor.to_dict(),
        "params": session.effective_params(),
        "energy": result.energy,
        "initial_energy": result.initial_energy,
        "steps_run": result.steps_run,
    }


@app.post("/estimate")
def estimate(req: EstimateRequest):
    """Closed-form spectrum estimate for a parameter set."""
    params = resolve_params(req.params)
    magnitudes = estimate_spectrum(params, req.fundamental_hz)
    return {"params": params, "magnitudes": [float(m) for m in magnitudes]}


if __name__ == "__main__":
    uvicorn.run("patchmatch.main:app", host="0.0.0.0", port=8000, reload=DEV)
