"""Tests for the pipeline orchestrator."""

import asyncio

import pytest

from ocr_studio import pipeline as pipeline_module
from ocr_studio.errors import OcrConfigError
from ocr_studio.models.callbacks import PipelineCallbacks
from ocr_studio.models.pipeline_models import PipelineResult, RunState
from ocr_studio.models.source_file import SourceFile
from ocr_studio.pipeline import OcrPipeline

from conftest import make_image, make_pdf


def run(pipeline: OcrPipeline, source: SourceFile):
    return asyncio.run(pipeline.run(source))


class Recorder:
    def __init__(self):
        self.states = []
        self.messages = []
        self.errors = []
        self.completed = []
        self.chunks = []

    def callbacks(self) -> PipelineCallbacks:
        return PipelineCallbacks(
            on_status=lambda state, message: (
                self.states.append(state),
                self.messages.append(message),
            ),
            on_chunk_complete=lambda index, total: self.chunks.append((index, total)),
            on_error=self.errors.append,
            on_complete=self.completed.append,
        )


class TestMerge:
    def test_fragments_joined_with_blank_line(self):
        result = PipelineResult(["first\n", "  ", "", "second", "\nthird  "])
        assert result.merge() == "first\n\nsecond\n\nthird"

    def test_no_fragments(self):
        assert PipelineResult().merge() == ""


class TestSingleSubmission:
    def test_small_image_is_sent_unchanged(self, boundary_factory):
        source = make_image(name="scan.jpg", fmt="JPEG", media_type="image/jpeg")
        boundary = boundary_factory(texts=["Hello"])
        recorder = Recorder()

        outcome = run(OcrPipeline(boundary, recorder.callbacks()), source)

        assert outcome.state is RunState.DONE
        assert outcome.text == "Hello"
        assert boundary.calls == [source]
        assert boundary.calls[0] is source
        assert recorder.states == [RunState.PREPARING, RunState.SUBMITTING, RunState.MERGING, RunState.DONE]
        assert recorder.chunks == [(1, 1)]
        assert recorder.completed == [outcome]

    def test_small_pdf_takes_fast_path(self, boundary_factory):
        source = make_pdf(3)
        boundary = boundary_factory(texts=["page text"])

        outcome = run(OcrPipeline(boundary), source)

        assert outcome.succeeded
        assert boundary.calls[0] is source
        assert outcome.total_pages == 3
        assert outcome.chunk_count == 1

    def test_oversized_image_is_compressed_first(self, boundary_factory):
        source = make_image(compress_level=0)
        boundary = boundary_factory(texts=["text"])
        recorder = Recorder()

        outcome = run(
            OcrPipeline(boundary, recorder.callbacks(), image_max_bytes=source.size - 1),
            source,
        )

        assert outcome.succeeded
        sent = boundary.calls[0]
        assert sent.media_type == "image/jpeg"
        assert sent.name == "photo.jpg"
        assert RunState.COMPRESSING_IMAGE in recorder.states

    def test_empty_ocr_text_is_a_success(self, boundary_factory):
        outcome = run(OcrPipeline(boundary_factory(texts=[""])), make_pdf(1))
        assert outcome.succeeded
        assert outcome.text == ""


class TestChunkedSubmission:
    def test_chunks_submitted_in_order_and_merged(self, boundary_factory):
        source = make_pdf(120, name="book.pdf")
        boundary = boundary_factory(texts=["one", "two", "three"])
        recorder = Recorder()

        outcome = run(OcrPipeline(boundary, recorder.callbacks(), chunk_pause=0), source)

        assert outcome.succeeded
        assert outcome.text == "one\n\ntwo\n\nthree"
        assert outcome.chunk_count == 3
        assert outcome.total_pages == 120
        assert [f.name for f in boundary.calls] == [
            "book.part-1.pdf",
            "book.part-2.pdf",
            "book.part-3.pdf",
        ]
        assert boundary.labels == ["Chunk 1 of 3", "Chunk 2 of 3", "Chunk 3 of 3"]
        assert recorder.chunks == [(1, 3), (2, 3), (3, 3)]
        assert "Processing chunk 2 of 3..." in recorder.messages
        assert RunState.SPLITTING_PDF in recorder.states

    def test_splitting_state_is_reported_before_the_split_runs(self, boundary_factory, monkeypatch):
        recorder = Recorder()
        seen_when_splitting = []
        real_split_pages = pipeline_module.split_pages

        def watched_split_pages(*args, **kwargs):
            seen_when_splitting.append((recorder.states[-1], recorder.messages[-1]))
            return real_split_pages(*args, **kwargs)

        monkeypatch.setattr(pipeline_module, "split_pages", watched_split_pages)

        outcome = run(
            OcrPipeline(boundary_factory(), recorder.callbacks(), chunk_pause=0),
            make_pdf(120),
        )

        assert outcome.succeeded
        assert len(seen_when_splitting) == 1
        state, message = seen_when_splitting[0]
        assert state is RunState.SPLITTING_PDF
        assert message.startswith("Splitting PDF (120 pages")
        assert recorder.states[:3] == [
            RunState.PREPARING,
            RunState.PREPARING,
            RunState.SPLITTING_PDF,
        ]

    def test_small_pdf_never_enters_splitting(self, boundary_factory, monkeypatch):
        recorder = Recorder()
        monkeypatch.setattr(
            pipeline_module, "split_pages", lambda *args: pytest.fail("split_pages called")
        )

        outcome = run(OcrPipeline(boundary_factory(), recorder.callbacks()), make_pdf(3))

        assert outcome.succeeded
        assert RunState.SPLITTING_PDF not in recorder.states

    def test_pause_between_chunks_only(self, boundary_factory, monkeypatch):
        pauses = []

        async def fake_sleep(delay):
            pauses.append(delay)

        monkeypatch.setattr(pipeline_module.asyncio, "sleep", fake_sleep)
        source = make_pdf(120)

        outcome = run(OcrPipeline(boundary_factory()), source)

        assert outcome.succeeded
        assert pauses == [0.25, 0.25]

    def test_failed_chunk_halts_run(self, boundary_factory, server_error):
        source = make_pdf(120)
        boundary = boundary_factory(texts=["one", "two", "three"], failures={2: server_error})
        recorder = Recorder()

        outcome = run(OcrPipeline(boundary, recorder.callbacks(), chunk_pause=0), source)

        assert outcome.state is RunState.FAILED
        assert outcome.text is None
        assert outcome.error == "Chunk 2 of 3 failed: Internal server error (HTTP 500)"
        assert outcome.fragments == ["one"]
        assert len(boundary.calls) == 2
        assert recorder.errors == [outcome.error]
        assert recorder.completed == []
        assert recorder.states[-1] is RunState.FAILED

    def test_any_chunk_failure_names_the_chunk(self, boundary_factory):
        missing_key = OcrConfigError("OCR_API_KEY environment variable is not set.")
        boundary = boundary_factory(failures={1: missing_key})

        outcome = run(OcrPipeline(boundary, chunk_pause=0), make_pdf(120))

        assert outcome.state is RunState.FAILED
        assert outcome.error == (
            "Chunk 1 of 3 failed: OCR_API_KEY environment variable is not set."
        )
        assert len(boundary.calls) == 1


class TestPreparationFailures:
    def test_unsupported_type_makes_no_request(self, boundary_factory):
        boundary = boundary_factory()
        source = SourceFile(data=b"plain text", media_type="text/plain", name="notes.txt")

        outcome = run(OcrPipeline(boundary), source)

        assert outcome.state is RunState.FAILED
        assert "Unsupported file type" in outcome.error
        assert boundary.calls == []

    def test_unsplittable_page_makes_no_request(self, boundary_factory):
        boundary = boundary_factory()
        outcome = run(
            OcrPipeline(boundary, pdf_max_bytes=20, pdf_max_pages=1, chunk_target_bytes=10),
            make_pdf(3),
        )
        assert outcome.state is RunState.FAILED
        assert "Page 1" in outcome.error
        assert boundary.calls == []

    def test_compression_exhausted_makes_no_request(self, boundary_factory):
        boundary = boundary_factory()
        outcome = run(OcrPipeline(boundary, image_max_bytes=10), make_image())
        assert outcome.state is RunState.FAILED
        assert "resize it manually" in outcome.error
        assert boundary.calls == []

    def test_corrupt_pdf(self, boundary_factory):
        boundary = boundary_factory()
        source = SourceFile(data=b"garbage", media_type="application/pdf", name="x.pdf")
        outcome = run(OcrPipeline(boundary), source)
        assert outcome.state is RunState.FAILED
        assert boundary.calls == []


class TestUnexpectedErrors:
    def test_unexpected_exception_becomes_failed_outcome(self, boundary_factory):
        boundary = boundary_factory(failures={1: RuntimeError("socket exploded")})
        outcome = run(OcrPipeline(boundary), make_pdf(1))
        assert outcome.state is RunState.FAILED
        assert outcome.error == "Processing failed: socket exploded"

    def test_cancellation_propagates(self, boundary_factory):
        boundary = boundary_factory(failures={1: asyncio.CancelledError()})
        with pytest.raises(asyncio.CancelledError):
            run(OcrPipeline(boundary), make_pdf(1))
