import asyncio
import logging

from soundsnap.services.progress import ProgressChannel, log_progress


async def test_channel_delivers_in_order_and_tracks_latest():
    channel = ProgressChannel()
    channel.publish("Queued...")
    channel.publish("Synthesizing audio")
    channel.close()

    assert channel.latest == "Synthesizing audio"
    assert await channel.drain() == ["Queued...", "Synthesizing audio"]


async def test_publish_after_close_is_dropped():
    channel = ProgressChannel()
    channel.close()
    channel.publish("late")
    channel.close()

    assert channel.closed
    assert channel.latest is None
    assert await channel.drain() == []


async def test_log_progress_consumes_until_closed(caplog):
    caplog.set_level(logging.INFO, logger="soundsnap.services.progress")
    channel = ProgressChannel()
    consumer = asyncio.create_task(log_progress(channel, "job"))

    channel.publish("step one")
    await asyncio.sleep(0)
    channel.publish("step two")
    channel.close()
    await consumer

    messages = [record.getMessage() for record in caplog.records if record.name == "soundsnap.services.progress"]
    assert messages == ["Progress [job]: step one", "Progress [job]: step two"]
