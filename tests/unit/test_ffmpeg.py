import pytest
from pathlib import Path
from unittest.mock import patch, MagicMock
from vsite.config.models import ConversionConfig
from vsite.domain.errors import EncoderNotFoundError
from vsite.domain.events import ConversionFailed, ConversionInterrupted, ConversionProgress
from vsite.domain.models import ConversionTask, JobStatus
from vsite.infrastructure.ffmpeg import FFmpegAdapter


def make_task(tmp_path, name="input.mkv"):
    source = tmp_path / name
    source.write_text("dummy")
    return ConversionTask(source_path=source, target_path=source.with_suffix(".mp4"), profile="cpu")


def fake_popen(lines, returncode, write_output=None):
    """Patch target for subprocess.Popen; optionally writes the output file like ffmpeg would."""
    def _popen(cmd, **kwargs):
        if write_output is not None:
            Path(cmd[-1]).write_bytes(write_output)
        process = MagicMock()
        process.stdout = list(lines)
        process.returncode = returncode
        process.wait.return_value = returncode
        return process
    return _popen


def test_ffmpeg_command_generation_cpu(tmp_path):
    task = make_task(tmp_path)
    adapter = FFmpegAdapter(event_bus=MagicMock())

    cmd = adapter._build_command(task, ConversionConfig().cpu)

    assert cmd[0] == "ffmpeg"
    assert cmd[cmd.index("-i") + 1] == str(task.source_path)
    assert cmd[cmd.index("-c:v") + 1] == "libx264"
    assert cmd[cmd.index("-preset") + 1] == "fast"
    assert cmd[cmd.index("-crf") + 1] == "22"
    assert cmd[cmd.index("-c:a") + 1] == "aac"
    assert cmd[cmd.index("-b:a") + 1] == "128k"
    assert cmd[cmd.index("-movflags") + 1] == "+faststart"
    assert "-hwaccel" not in cmd
    # Written to a temp file first, container named explicitly
    assert cmd[-3:] == ["-f", "mp4", str(task.temp_path)]
    assert task.temp_path.name == "input.mp4.tmp"


def test_ffmpeg_command_generation_gpu(tmp_path):
    task = make_task(tmp_path)
    adapter = FFmpegAdapter(event_bus=MagicMock())

    cmd = adapter._build_command(task, ConversionConfig().gpu)

    assert cmd.index("-hwaccel") < cmd.index("-i")
    assert cmd[cmd.index("-hwaccel") + 1] == "cuda"
    assert cmd[cmd.index("-hwaccel_output_format") + 1] == "cuda"
    assert cmd[cmd.index("-c:v") + 1] == "h264_nvenc"
    assert cmd[cmd.index("-preset") + 1] == "p4"
    assert cmd[cmd.index("-cq") + 1] == "23"


def test_ffmpeg_custom_binary_path(tmp_path):
    adapter = FFmpegAdapter(event_bus=MagicMock(), ffmpeg_path="/opt/ffmpeg/bin/ffmpeg")
    assert adapter._build_command(make_task(tmp_path), ConversionConfig().cpu)[0] == "/opt/ffmpeg/bin/ffmpeg"


def test_ensure_available_missing_binary():
    adapter = FFmpegAdapter(event_bus=MagicMock())
    with patch("vsite.infrastructure.ffmpeg.shutil.which", return_value=None):
        with pytest.raises(EncoderNotFoundError, match="sudo apt install ffmpeg"):
            adapter.ensure_available()


def test_ensure_available_found():
    adapter = FFmpegAdapter(event_bus=MagicMock())
    with patch("vsite.infrastructure.ffmpeg.shutil.which", return_value="/usr/bin/ffmpeg"):
        assert adapter.ensure_available() == "/usr/bin/ffmpeg"


def test_ffmpeg_convert_success_renames_temp(tmp_path):
    task = make_task(tmp_path)
    bus = MagicMock()
    lines = [
        "Input #0, matroska,webm, from 'input.mkv':",
        "  Duration: 00:00:10.00, start: 0.000000, bitrate: 1000 kb/s",
        "frame=  100 fps=10.0 q=22.0 size=  100kB time=00:00:05.00 bitrate= 100.0kbits/s speed=1.0x",
    ]

    with patch("subprocess.Popen", side_effect=fake_popen(lines, 0, write_output=b"mp4 data")):
        FFmpegAdapter(event_bus=bus).convert(task, ConversionConfig().cpu)

    assert task.status == JobStatus.COMPLETED
    assert task.target_path.read_bytes() == b"mp4 data"
    assert not task.temp_path.exists()
    progress = [c.args[0] for c in bus.publish.call_args_list if isinstance(c.args[0], ConversionProgress)]
    assert progress and progress[0].progress_percent == pytest.approx(50.0)


def test_ffmpeg_convert_failure_removes_partial_output(tmp_path):
    task = make_task(tmp_path)
    bus = MagicMock()

    with patch("subprocess.Popen", side_effect=fake_popen(["Invalid data found"], 1, write_output=b"partial")):
        FFmpegAdapter(event_bus=bus).convert(task, ConversionConfig().cpu)

    assert task.status == JobStatus.FAILED
    assert "ffmpeg exited with code 1" in task.error_message
    assert "Invalid data found" in task.error_message
    assert not task.temp_path.exists()
    assert not task.target_path.exists()
    failed = [c.args[0] for c in bus.publish.call_args_list if isinstance(c.args[0], ConversionFailed)]
    assert len(failed) == 1


def test_ffmpeg_success_without_output_is_failure(tmp_path):
    task = make_task(tmp_path)
    with patch("subprocess.Popen", side_effect=fake_popen([], 0)):
        FFmpegAdapter(event_bus=MagicMock()).convert(task, ConversionConfig().cpu)

    assert task.status == JobStatus.FAILED
    assert not task.target_path.exists()


def test_ffmpeg_start_error_is_per_file_failure(tmp_path):
    task = make_task(tmp_path)
    with patch("subprocess.Popen", side_effect=FileNotFoundError("ffmpeg")):
        FFmpegAdapter(event_bus=MagicMock()).convert(task, ConversionConfig().cpu)

    assert task.status == JobStatus.FAILED
    assert "could not start" in task.error_message


def test_ffmpeg_interrupt_cleans_up_and_reraises(tmp_path):
    task = make_task(tmp_path)
    task.temp_path.write_bytes(b"partial")

    process = MagicMock()
    process.stdout.__iter__.side_effect = KeyboardInterrupt

    bus = MagicMock()

    with patch("subprocess.Popen", return_value=process):
        with pytest.raises(KeyboardInterrupt):
            FFmpegAdapter(event_bus=bus).convert(task, ConversionConfig().cpu)

    assert task.status == JobStatus.INTERRUPTED
    published = [c.args[0] for c in bus.publish.call_args_list]
    assert [type(e) for e in published] == [ConversionInterrupted]
    assert process.terminate.called
    assert not task.temp_path.exists()


def test_list_encoders(tmp_path):
    with patch("subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(stdout=" V....D h264_nvenc  NVIDIA NVENC H.264 encoder\n")
        output = FFmpegAdapter(event_bus=MagicMock()).list_encoders()

    assert "h264_nvenc" in output
    assert mock_run.call_args.args[0] == ["ffmpeg", "-hide_banner", "-encoders"]
