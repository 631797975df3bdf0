"""Tests for the export stage: layout, media numbering and idempotent re-runs."""
import asyncio
from zoneinfo import ZoneInfo

import aiohttp
from aiohttp import test_utils

from fakes import FakeApi
from fcexport.control import ControlContext
from fcexport.domain import DetailRecord, SkipReason
from fcexport.downloader import MediaDownloader
from fcexport.export import (
    ContentExporter,
    build_document,
    format_display_date,
    format_folder_timestamp,
    post_directory_name,
)


TOKYO = ZoneInfo("Asia/Tokyo")
RELEASE = 1704412987000  # 2024-01-05 09:03:07 JST
STAMP = "2024-01-05_090307"
SENDER = "a4npPurePgMCD5wEmekQO"


def record(**payload):
    base = {"sendingOfficialUserId": SENDER, "releaseDate": RELEASE, "title": "Hello/World"}
    base.update(payload)
    return DetailRecord.from_payload(base, notification_id="1")


def export(tmp_path, records, api=None, runs=1):
    """Export ``records`` ``runs`` times; returns (summaries, api, request counts)."""
    api = api or FakeApi()

    async def scenario():
        summaries = []
        requests = []
        async with test_utils.TestServer(api.app()) as server:
            async with aiohttp.ClientSession() as session:
                for _ in range(runs):
                    downloader = MediaDownloader(session)
                    exporter = ContentExporter(
                        downloader,
                        ControlContext(),
                        export_dir=tmp_path / "out",
                        media_base_url=str(server.make_url("/")),
                        yield_delay=0
                    )
                    summaries.append(await exporter.export(records))
                    requests.append(downloader.requests)
        return summaries, requests

    summaries, requests = asyncio.run(scenario())
    return summaries, api, requests


class TestDocumentFormatting:
    """Tests for timestamp and document helpers."""

    def test_folder_timestamp(self):
        assert format_folder_timestamp(RELEASE, TOKYO) == STAMP

    def test_folder_timestamp_missing(self):
        assert format_folder_timestamp(None, TOKYO) == "undated"

    def test_display_date(self):
        assert format_display_date(RELEASE, TOKYO) == "2024-1-5 9:03:07"
        assert format_display_date(None, TOKYO) == ""

    def test_post_directory_name(self):
        assert post_directory_name(RELEASE, "Hello/World", TOKYO) == f"{STAMP}_Hello_World"
        assert post_directory_name(RELEASE, "", TOKYO) == f"{STAMP}_untitled"

    def test_build_document(self):
        doc = build_document("T", "S", "D", "body\n\n", ["a.jpg", "b.png"])
        assert doc == (
            "# T\n\n**Sender**: S\n**Date**: D\n\n---\n\nbody\n\n\n\n---\n\n"
            "![image](a.jpg)\n![image](b.png)\n"
        )


class TestContentExporter:
    """Tests for ContentExporter against a local media host."""

    def test_layout_and_document(self, tmp_path):
        rec = record(body1="<p>Hi there</p>", image1="media/h.jpg")
        (summary,), _, _ = export(tmp_path, [rec])

        sender_dir = tmp_path / "out" / "東山恵里沙"
        post_dir = sender_dir / f"{STAMP}_Hello_World"
        filename = f"{STAMP}_01.jpg"

        assert (post_dir / filename).read_bytes() == b"img:h.jpg"
        assert (sender_dir / "pictures" / filename).read_bytes() == b"img:h.jpg"
        assert (post_dir / "index.md").read_text(encoding="utf-8") == (
            "# Hello/World\n\n"
            "**Sender**: 東山恵里沙\n"
            "**Date**: 2024-1-5 9:03:07\n\n"
            "---\n\nHi there\n\n\n\n---\n\n"
            f"![image]({filename})\n"
        )
        assert summary.images_downloaded == 1
        assert summary.exported[0].post_dir == post_dir

    def test_media_numbering_body_then_header(self, tmp_path):
        """Test files follow body-field order, then header-field order."""
        rec = record(
            image1="media/header.jpg",
            body2='<p><img src="media/b2a.png"><img src="media/b2b.jpg">two</p>',
            body1='<p><img src="media/b1a.jpg">one</p>',
        )
        export(tmp_path, [rec])

        post_dir = tmp_path / "out" / "東山恵里沙" / f"{STAMP}_Hello_World"
        assert (post_dir / f"{STAMP}_01.jpg").read_bytes() == b"img:b1a.jpg"
        assert (post_dir / f"{STAMP}_02.png").read_bytes() == b"img:b2a.png"
        assert (post_dir / f"{STAMP}_03.jpg").read_bytes() == b"img:b2b.jpg"
        assert (post_dir / f"{STAMP}_04.jpg").read_bytes() == b"img:header.jpg"

        document = (post_dir / "index.md").read_text(encoding="utf-8")
        assert "---\n\none\n\ntwo\n\n\n\n---" in document
        assert document.endswith(
            f"![image]({STAMP}_01.jpg)\n![image]({STAMP}_02.png)\n"
            f"![image]({STAMP}_03.jpg)\n![image]({STAMP}_04.jpg)\n"
        )

    def test_rerun_is_idempotent(self, tmp_path):
        """Test a second run rewrites identical documents and downloads nothing."""
        records = [
            record(body1='<p><img src="media/a.jpg">x</p>', image1="media/h.jpg"),
            record(releaseDate=RELEASE + 86400000, title="Second", image1="media/s.jpg"),
        ]
        post_dir = tmp_path / "out" / "東山恵里沙" / f"{STAMP}_Hello_World"

        _, api, requests = export(tmp_path, records)
        first = (post_dir / "index.md").read_bytes()
        hits_after_first = len(api.media_hits)

        summaries, api, requests = export(tmp_path, records, api=api)

        assert requests == [0]
        assert len(api.media_hits) == hits_after_first
        assert (post_dir / "index.md").read_bytes() == first
        assert summaries[0].images_downloaded == 0
        assert sum(p.reused for p in summaries[0].exported) == 3

    def test_gallery_copy_repaired(self, tmp_path):
        rec = record(image1="media/h.jpg")
        export(tmp_path, [rec])

        gallery_file = tmp_path / "out" / "東山恵里沙" / "pictures" / f"{STAMP}_01.jpg"
        gallery_file.unlink()

        _, _, requests = export(tmp_path, [rec])

        assert requests == [0]
        assert gallery_file.read_bytes() == b"img:h.jpg"

    def test_failed_download_still_referenced(self, tmp_path):
        """Test a failed image is skipped but the document keeps its reference."""
        rec = record(image1="media/missing.jpg", image2="media/ok.gif")
        (summary,), _, _ = export(tmp_path, [rec])

        post_dir = tmp_path / "out" / "東山恵里沙" / f"{STAMP}_Hello_World"
        assert not (post_dir / f"{STAMP}_01.jpg").exists()
        assert (post_dir / f"{STAMP}_02.gif").exists()
        assert summary.images_failed == 1
        assert f"![image]({STAMP}_01.jpg)" in (post_dir / "index.md").read_text(encoding="utf-8")

    def test_malformed_image_url_does_not_drop_post(self, tmp_path):
        """Test an unparsable image URL counts as one failed image, not a failed post."""
        rec = record(body1='<p><img src="http://[bad">text</p>', image1="media/h.jpg")
        (summary,), _, _ = export(tmp_path, [rec])

        post_dir = tmp_path / "out" / "東山恵里沙" / f"{STAMP}_Hello_World"
        document = (post_dir / "index.md").read_text(encoding="utf-8")

        assert summary.skipped == []
        assert summary.images_failed == 1
        assert not (post_dir / f"{STAMP}_01.jpg").exists()
        assert (post_dir / f"{STAMP}_02.jpg").read_bytes() == b"img:h.jpg"
        assert f"![image]({STAMP}_01.jpg)" in document
        assert "text" in document

    def test_out_of_range_release_date_is_undated(self, tmp_path):
        rec = record(releaseDate=10 ** 20, image1="media/h.jpg")
        (summary,), _, _ = export(tmp_path, [rec])

        post_dir = tmp_path / "out" / "東山恵里沙" / "undated_Hello_World"
        assert summary.skipped == []
        assert (post_dir / "undated_01.jpg").exists()
        assert "**Date**: \n" in (post_dir / "index.md").read_text(encoding="utf-8")

    def test_record_without_sender_skipped(self, tmp_path):
        rec = record(sendingOfficialUserId="")
        (summary,), _, _ = export(tmp_path, [rec])

        assert summary.exported == []
        assert summary.skipped[0].reason is SkipReason.MISSING_SENDER
        assert list((tmp_path / "out").iterdir()) == []

    def test_unmapped_sender_uses_identifier(self, tmp_path):
        rec = record(sendingOfficialUserId="some id", title="")
        export(tmp_path, [rec])

        assert (tmp_path / "out" / "someid" / f"{STAMP}_untitled" / "index.md").exists()

    def test_progress_reports(self, tmp_path):
        records = [record(releaseDate=RELEASE + i * 1000) for i in range(7)]
        reports = []

        async def scenario():
            async with aiohttp.ClientSession() as session:
                exporter = ContentExporter(
                    MediaDownloader(session), ControlContext(),
                    export_dir=tmp_path, batch_size=5, yield_delay=0
                )
                await exporter.export(records, on_progress=reports.append)

        asyncio.run(scenario())
        assert [(r.stage, r.percent, r.done) for r in reports] == [
            ("exportPosts", 71, 5),
            ("exportPosts", 100, 7),
        ]
