import asyncio

import pytest

from refgen.core.exceptions import GenerationServiceError
from refgen.schemas.generation import GenerateRequest, GenerationTags
from refgen.services.attachment_store import AttachmentFile
from refgen.services.replicate_generation_service import ReplicateGenerationService, enhance_prompt


class StubClient:
    """Stands in for replicate.Client, recording async_run calls."""

    def __init__(self, output=None, error=None):
        self.output = output if output is not None else ["https://replicate.delivery/out-0.png"]
        self.error = error
        self.runs = []

    async def async_run(self, model, input):
        self.runs.append((model, input))
        if self.error is not None:
            raise self.error
        return self.output


def _request(**overrides):
    values = dict(
        base_prompt="girl with sword",
        tags=GenerationTags(style="anime", pose="standing", camera="full-body", lighting="natural"),
        count=1,
        aspect_ratio="16:9",
    )
    values.update(overrides)
    return GenerateRequest(**values)


def _service(client):
    service = ReplicateGenerationService(model="owner/model")
    service.client = client
    return service


class TestEnhancePrompt:
    def test_folds_tags_into_prompt(self):
        assert enhance_prompt(_request()) == (
            "girl with sword, anime style, standing pose, full-body shot, natural lighting"
        )

    def test_skips_missing_tags(self):
        request = _request(tags=GenerationTags(pose="sitting"))

        assert enhance_prompt(request) == "girl with sword, sitting pose"

    def test_no_tags_keeps_base_prompt(self):
        assert enhance_prompt(_request(tags=GenerationTags())) == "girl with sword"


class TestGenerate:
    async def test_runs_model_with_request_inputs(self):
        client = StubClient(output=["https://replicate.delivery/a.png", "https://replicate.delivery/b.png"])
        service = _service(client)

        references = await service.generate("p1", _request(count=2))

        model, params = client.runs[0]
        assert model == "owner/model"
        assert params["num_outputs"] == 2
        assert params["aspect_ratio"] == "16:9"
        assert params["prompt"].startswith("girl with sword, anime style")
        assert "negative_prompt" not in params
        assert "image" not in params
        assert [r.image_url for r in references] == [
            "https://replicate.delivery/a.png", "https://replicate.delivery/b.png",
        ]
        assert references[0].base_prompt == "girl with sword"
        assert references[0].enhanced_prompt == params["prompt"]
        assert references[0].tags["style"] == "anime"

    async def test_negative_prompt_only_when_set(self):
        client = StubClient()
        service = _service(client)

        await service.generate("p1", _request(negative_prompt="blurry"))

        assert client.runs[0][1]["negative_prompt"] == "blurry"

    async def test_single_output_is_wrapped(self):
        service = _service(StubClient(output="https://replicate.delivery/one.png"))

        references = await service.generate("p1", _request())

        assert [r.image_url for r in references] == ["https://replicate.delivery/one.png"]

    async def test_generated_references_are_listed_per_project(self):
        service = _service(StubClient())

        await service.generate("p1", _request())

        assert len(await service.list_references("p1")) == 1
        assert await service.list_references("p2") == []


class TestGenerateFromImages:
    async def test_only_first_attachment_is_sent(self):
        client = StubClient()
        service = _service(client)
        files = [
            AttachmentFile(filename="front.png", content=b"front", content_type="image/png"),
            AttachmentFile(filename="side.png", content=b"side", content_type="image/png"),
        ]

        await service.generate_from_images("p1", _request(), files)

        image = client.runs[0][1]["image"]
        assert image.read() == b"front"


class TestErrors:
    async def test_client_errors_are_wrapped(self):
        service = _service(StubClient(error=RuntimeError("model unavailable")))

        with pytest.raises(GenerationServiceError, match="model unavailable") as exc_info:
            await service.generate("p1", _request())

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_empty_output_is_an_error(self):
        service = _service(StubClient(output=[]))

        with pytest.raises(GenerationServiceError, match="No media URLs"):
            await service.generate("p1", _request())

    async def test_cancellation_is_not_converted(self):
        service = _service(StubClient(error=asyncio.CancelledError()))

        with pytest.raises(asyncio.CancelledError):
            await service.generate("p1", _request())
