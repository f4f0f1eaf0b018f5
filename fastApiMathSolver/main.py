# main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .agent import MathSolverAgent
from .config import Settings
from .errors import AuthError, ValidationError
from .uploads import encode_image, staged_upload, validate_upload

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Error processing request"


def create_app(settings: Optional[Settings] = None, solver=None) -> FastAPI:
    """Build the API. A solver passed in is used as-is, otherwise one is
    built from the settings at startup and a missing key aborts startup."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.solver is None:
            app.state.solver = MathSolverAgent(settings)
        yield

    app = FastAPI(title="math problem solver API", lifespan=lifespan)
    app.state.settings = settings
    app.state.solver = solver

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed form fields get the same 400 as missing ones, without echoing input."""
        fields = {str(err.get("loc", ())[-1]) for err in exc.errors() if err.get("loc")}
        message = "description required" if "description" in fields else "image required"
        logger.info(f"Rejected /process request with malformed fields {sorted(fields)}")
        return JSONResponse({"error": message}, status_code=400)

    @app.post("/process")
    async def process(
        request: Request,
        description: Optional[str] = Form(None),
        image: Optional[UploadFile] = File(None),
    ):
        try:
            description = validate_upload(description, image)
        except ValidationError as e:
            logger.info(f"Rejected /process request: {e}")
            return JSONResponse({"error": str(e)}, status_code=400)

        solver = request.app.state.solver
        try:
            async with staged_upload(image, settings.upload_dir) as handle:
                logger.info(f"Received description: {description}")
                logger.info(f"Image file path: {handle.path}")

                encoded = await encode_image(handle)
                result_text = await solver.solve(description, encoded)
        except AuthError:
            logger.critical("Provider credential rejected while processing /process request", exc_info=True)
            return JSONResponse({"error": GENERIC_ERROR}, status_code=500)
        except Exception as e:
            logger.exception(f"Error processing /process request ({type(e).__name__}), filename={image.filename!r}")
            return JSONResponse({"error": GENERIC_ERROR}, status_code=500)

        logger.info(f"Gemini response: {result_text}")
        return JSONResponse({"result": result_text})

    return app


app = create_app()


def main():
    logging.basicConfig(level=logging.INFO)
    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()

# uvicorn fastApiMathSolver.main:app --host 0.0.0.0 --port 5000
