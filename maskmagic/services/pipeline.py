"""Edit pipeline orchestration: normalize, mask, budget-fit, submit, reconcile."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from maskmagic.config.settings import MIB, Settings, get_settings
from maskmagic.errors import InvalidPrompt, PayloadTooLarge, PipelineError
from maskmagic.imggen.generator_client import EditBackendClient
from maskmagic.imggen.postproc import ImagePostProcessor
from maskmagic.imggen.schemas import GenerationRequest
from maskmagic.imgproc.compression import fit_to_budget
from maskmagic.imgproc.mask import MaskGenerator, MaskShape
from maskmagic.imgproc.normalize import ImageNormalizer
from maskmagic.imgproc.raster import RasterImage
from maskmagic.services.stages import PipelineState

logger = logging.getLogger(__name__)

StateCallback = Callable[[PipelineState], None]


@dataclass(slots=True)
class GenerationResult:
    """Outcome of a single pipeline invocation."""

    state: PipelineState
    image: RasterImage | None = None
    error: PipelineError | None = None
    failed_stage: PipelineState | None = None

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.DONE


class EditPipeline:
    """Runs one edit request end to end, surfacing the first failure.

    The instance only holds immutable collaborators, so concurrent calls from
    different threads do not share any per-invocation state.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: EditBackendClient | None = None,
        normalizer: ImageNormalizer | None = None,
        mask_generator: MaskGenerator | None = None,
        post_processor: ImagePostProcessor | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client or EditBackendClient.from_settings(self._settings)
        self._normalizer = normalizer or ImageNormalizer.from_settings(self._settings)
        self._masks = mask_generator or MaskGenerator()
        self._post_processor = post_processor or ImagePostProcessor()

    def generate(
        self,
        image: RasterImage,
        prompt: str,
        shape: MaskShape = MaskShape.CIRCLE,
        *,
        coverage: float = 0.5,
        on_state: StateCallback | None = None,
    ) -> RasterImage:
        """Return the edited, upright image or raise the classified :class:`PipelineError`."""

        result = self.run(image, prompt, shape, coverage=coverage, on_state=on_state)
        if result.error is not None:
            raise result.error
        if result.image is None:
            raise PipelineError("Edit pipeline finished without an image")
        return result.image

    def run(
        self,
        image: RasterImage,
        prompt: str,
        shape: MaskShape = MaskShape.CIRCLE,
        *,
        coverage: float = 0.5,
        on_state: StateCallback | None = None,
    ) -> GenerationResult:
        """Same as :meth:`generate` but reports failures in the returned result."""

        current = PipelineState.IDLE

        def _enter(state: PipelineState) -> None:
            nonlocal current
            current = state
            logger.info("Edit pipeline stage: %s", state.value)
            if on_state is not None:
                on_state(state)

        logger.info("Processing image %s with prompt %r, mask %s", image.describe(), prompt, shape.value)
        try:
            if not prompt or not prompt.strip():
                raise InvalidPrompt("Prompt must not be empty")

            _enter(PipelineState.PREPARING)
            prepared = self._normalizer.prepare(image)

            _enter(PipelineState.MASK_GENERATING)
            mask = self._masks.generate_mask(prepared, shape, coverage)

            _enter(PipelineState.BUDGET_FITTING)
            prepared, mask = self._fit_payload(prepared, mask)

            _enter(PipelineState.SUBMITTING)
            request = GenerationRequest(
                image=prepared,
                mask=mask,
                prompt=prompt,
                model=self._settings.model,
                size=self._settings.size,
                response_format=self._settings.response_format,
            )
            response = self._client.submit(request)

            _enter(PipelineState.DOWNLOADING)
            downloaded = self._post_processor.decode(self._client.download(response.result_url()))

            _enter(PipelineState.ORIENTATION_FIXING)
            final = self._post_processor.reconcile(downloaded)
        except PipelineError as exc:
            logger.error("Image generation failed during %s: %s", current.value, exc)
            if on_state is not None:
                on_state(PipelineState.FAILED)
            return GenerationResult(state=PipelineState.FAILED, error=exc, failed_stage=current)

        _enter(PipelineState.DONE)
        return GenerationResult(state=PipelineState.DONE, image=final)

    def close(self) -> None:
        """Release the HTTP session held by the backend client."""

        self._client.close()

    def _fit_payload(
        self,
        image: RasterImage,
        mask: RasterImage,
    ) -> tuple[RasterImage, RasterImage]:
        # The wire format is PNG, so only lossless reduction is allowed here and
        # the fallback canvas is the resolution floor.
        image = fit_to_budget(
            image,
            self._settings.soft_limit_bytes,
            min_side=self._settings.fallback_canvas_size,
            allow_lossy=False,
        )
        if not mask.is_congruent(image):
            logger.warning(
                "Mask %s doesn't match image %s - attempting to fix",
                mask.describe(),
                image.describe(),
            )
            mask = self._masks.fit_mask(mask, image)

        limit = self._settings.hard_limit_bytes
        for label, candidate in (("Image", image), ("Mask", mask)):
            encoded_size = candidate.encoded_size("PNG")
            logger.info("%s file size: %.2f MB", label, encoded_size / MIB)
            if encoded_size > limit:
                raise PayloadTooLarge(
                    f"{label} size exceeds {limit / MIB:.0f}MB limit ({encoded_size / MIB:.2f} MB)"
                )
        return image, mask
