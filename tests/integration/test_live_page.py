"""
Live integration test for Address Discoverer.

Fetches a real staff directory page and runs the whole extraction on it,
unlike the unit tests which only see synthetic markup.

Usage:
    ADC_RUN_INTEGRATION=1 pytest tests/integration/test_live_page.py -v

    # Your own page
    ADC_TEST_URL="https://example.edu/staff/" ADC_RUN_INTEGRATION=1 pytest tests/integration/test_live_page.py -v

Requirements:
    - ADC_RUN_INTEGRATION=1 (guard against accidental network use)
    - network access
"""

import os

import pytest

from discoverer.pipeline.contact_links import WebLinkFollower
from discoverer.pipeline.extractor import IndividualExtractor
from discoverer.pipeline.fetchers.static import StaticFetcher
from discoverer.progress import StatusReporter, print_consumer
from discoverer.schemas import CandidateRecord


@pytest.mark.skipif(
    os.getenv("ADC_RUN_INTEGRATION") != "1",
    reason="Integration tests require ADC_RUN_INTEGRATION=1"
)
def test_live_directory_extraction():
    test_url = os.getenv("ADC_TEST_URL", "https://www.cs.princeton.edu/people/faculty")
    print(f"\n🌐 Testing URL: {test_url}")

    with StaticFetcher() as fetcher:
        page = fetcher.fetch(test_url)
        assert page.ok, f"Failed to fetch {test_url}: status={page.status_code} mime={page.mime}"

        extractor = IndividualExtractor(
            base_url=page.url,
            progress=StatusReporter([print_consumer]),
            weblink_follower=WebLinkFollower(fetcher) if os.getenv("ADC_FOLLOW_WEBLINKS") == "1" else None,
        )
        results = extractor.extract_html(page.html)

    records = [r for r in results if isinstance(r, CandidateRecord)]
    print(f"✅ Layout: {extractor.last_layout}")
    print(f"📇 Records found: {len(records)} ({len(results) - len(records)} unparsable)")
    for r in records[:10]:
        print(f"   {r.full_name} <{r.address}> [{r.strategy}, score={r.score}]")

    assert records, "No records extracted"
    assert all(r.last_name for r in records)
    assert all(r.address for r in records)
