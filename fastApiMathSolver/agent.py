import asyncio
import base64

import httpx
from google import genai
from google.genai import errors
from google.genai import types # For creating message Content/Parts

from .config import Settings
from .errors import AuthError, ProviderError, SolverTimeoutError
from .uploads import EncodedImage

# Export these items for use in other modules
__all__ = ['MathSolverAgent', 'build_prompt']

TASK_DIRECTIVE = "Analyze and solve/explain the math equation in this image."

AUTH_STATUS_CODES = (401, 403)
AUTH_STATUSES = ("UNAUTHENTICATED", "PERMISSION_DENIED")
# Gemini answers a bad key with 400 INVALID_ARGUMENT carrying this reason
AUTH_REASONS = ("API_KEY_INVALID",)


def build_prompt(description: str) -> str:
    return f"Description: {description}. {TASK_DIRECTIVE}"


def _is_auth_failure(e: errors.ClientError) -> bool:
    if e.code in AUTH_STATUS_CODES or getattr(e, "status", None) in AUTH_STATUSES:
        return True
    body = e.details if isinstance(e.details, dict) else {}
    body = body.get("error", body)
    details = body.get("details") if isinstance(body, dict) else None
    if not isinstance(details, list):
        return False
    return any(isinstance(d, dict) and d.get("reason") in AUTH_REASONS for d in details)


class MathSolverAgent:
    """Sends one description + image to the Gemini model and returns its text.

    The client is built once from the settings and reused for every request.
    Calls are never retried.
    """

    def __init__(self, settings: Settings, client=None):
        if not settings.gemini_api_key:
            raise AuthError("GEMINI_API_KEY is not set")
        self.settings = settings
        self.client = client or genai.Client(api_key=settings.gemini_api_key)

    async def solve(self, description: str, image: EncodedImage) -> str:
        content = types.Content(
            role='user',
            parts=[
                types.Part(text=build_prompt(description)),
                types.Part(inline_data=types.Blob(
                    mime_type=image.mime_type,
                    data=base64.b64decode(image.data),
                )),
            ]
        )

        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.settings.gemini_model,
                    contents=[content],
                ),
                timeout=self.settings.solver_timeout,
            )
        except asyncio.TimeoutError as e:
            raise SolverTimeoutError(
                f"no response from {self.settings.gemini_model} within {self.settings.solver_timeout}s"
            ) from e
        except errors.ClientError as e:
            if _is_auth_failure(e):
                raise AuthError(f"credential rejected by provider: {e}") from e
            raise ProviderError(f"provider rejected request: {e}") from e
        except errors.APIError as e:
            raise ProviderError(f"provider call failed: {e}") from e
        except httpx.TimeoutException as e:
            raise SolverTimeoutError(f"provider transport timed out: {e}") from e
        except httpx.TransportError as e:
            raise ProviderError(f"could not reach provider: {e}") from e

        text = response.text
        if not text:
            raise ProviderError("provider returned an empty completion")
        return text
