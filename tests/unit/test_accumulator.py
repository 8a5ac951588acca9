"""Unit tests for the incremental page accumulator."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from picturebook.core.accumulator import accumulate
from picturebook.core.errors import PageGenerationError


class TestAccumulate:
    """Tests for accumulate()."""

    @pytest.mark.asyncio
    async def test_threads_prior_results(self):
        """Page N sees exactly the results of pages 1..N-1."""
        seen = []

        async def generate_one(page_number, prior):
            seen.append(prior)
            return f"page-{page_number}"

        results = await accumulate(4, generate_one)

        assert results == ["page-1", "page-2", "page-3", "page-4"]
        assert seen == [(), ("page-1",), ("page-1", "page-2"), ("page-1", "page-2", "page-3")]

    @pytest.mark.asyncio
    async def test_prior_results_are_immutable(self):
        """The prior results passed to a page are a tuple."""
        async def generate_one(page_number, prior):
            assert isinstance(prior, tuple)
            return page_number

        await accumulate(3, generate_one)

    @pytest.mark.asyncio
    async def test_zero_pages(self):
        """page_count 0 returns [] without calling the generator."""
        generate_one = AsyncMock()

        assert await accumulate(0, generate_one) == []
        generate_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_calls_are_never_concurrent(self):
        """Each page finishes before the next one starts."""
        active = 0
        max_active = 0

        async def generate_one(page_number, prior):
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0)
            active -= 1
            return page_number

        await accumulate(5, generate_one)
        assert max_active == 1

    @pytest.mark.asyncio
    async def test_failure_aborts_and_reports_page(self):
        """A failure on page N stops the run; N+1 is never attempted."""
        attempted = []

        async def generate_one(page_number, prior):
            attempted.append(page_number)
            if page_number == 3:
                raise RuntimeError("model error")
            return page_number

        with pytest.raises(PageGenerationError) as exc_info:
            await accumulate(8, generate_one)

        assert attempted == [1, 2, 3]
        assert exc_info.value.page_number == 3
        assert exc_info.value.completed_pages == 2
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_on_page_runs_before_next_page(self):
        """on_page for page N completes before page N+1 starts."""
        events = []

        async def generate_one(page_number, prior):
            events.append(("generate", page_number))
            return page_number

        async def on_page(page_number, result, results):
            events.append(("saved", page_number, results))

        await accumulate(2, generate_one, on_page=on_page)

        assert events == [
            ("generate", 1),
            ("saved", 1, (1,)),
            ("generate", 2),
            ("saved", 2, (1, 2)),
        ]

    @pytest.mark.asyncio
    async def test_completed_pages_are_not_regenerated(self):
        """Restored pages seed the fold; generation starts after them."""
        calls = []

        async def generate_one(page_number, prior):
            calls.append((page_number, prior))
            return f"new-{page_number}"

        results = await accumulate(4, generate_one, completed=["old-1", "old-2"])

        assert results == ["old-1", "old-2", "new-3", "new-4"]
        assert calls[0] == (3, ("old-1", "old-2"))

    @pytest.mark.asyncio
    async def test_completed_longer_than_page_count(self):
        with pytest.raises(ValueError):
            await accumulate(2, AsyncMock(), completed=[1, 2, 3])

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        """CancelledError is not wrapped as a page failure."""
        async def generate_one(page_number, prior):
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await accumulate(3, generate_one)
