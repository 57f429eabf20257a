"""
Video transcoding pipeline

Wraps the ffmpeg/ffprobe binaries: validates an uploaded file, extracts a
thumbnail, encodes the high/medium/low variants in parallel and uploads the
results to object storage. Local temporary files are always removed, even
when a step fails.
"""

import json
import logging
import os
import subprocess
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Optional

import config
from storage import StorageBackend

logger = logging.getLogger(__name__)

ALLOWED_VIDEO_MIME_TYPES = (
    "video/mp4",
    "video/quicktime",
    "video/x-msvideo",
    "video/x-matroska",
)
ALLOWED_VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv")


class VideoValidationError(Exception):
    """The uploaded file is not a usable video"""
    pass


class VideoProcessingError(Exception):
    """ffmpeg failed while producing thumbnails or quality variants"""
    pass


def is_allowed_video(filename: str, content_type: Optional[str]) -> bool:
    ext = Path(filename or "").suffix.lower()
    return ext in ALLOWED_VIDEO_EXTENSIONS and content_type in ALLOWED_VIDEO_MIME_TYPES


def _remove(path) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"Erro ao remover ficheiro temporário {path}: {e}")


class VideoProcessor:
    def __init__(self, work_dir: str = None, ffmpeg_path: str = None, ffprobe_path: str = None,
                 qualities: Dict[str, dict] = None, timeout: int = 60 * 60):
        self.work_dir = Path(work_dir or config.VIDEO_TMP_DIR)
        self.ffmpeg_path = ffmpeg_path or config.FFMPEG_PATH
        self.ffprobe_path = ffprobe_path or config.FFPROBE_PATH
        self.qualities = qualities or config.VIDEO_QUALITIES
        self.timeout = timeout
        self.work_dir.mkdir(parents=True, exist_ok=True)

    def _run(self, cmd, timeout: int = None) -> subprocess.CompletedProcess:
        logger.debug(f"A executar: {' '.join(cmd)}")
        return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout or self.timeout, check=True)

    def probe(self, video_path: str) -> dict:
        cmd = [
            self.ffprobe_path, "-v", "error",
            "-print_format", "json",
            "-show_format", "-show_streams",
            str(video_path),
        ]
        try:
            result = self._run(cmd, timeout=30)
            return json.loads(result.stdout or "{}")
        except subprocess.CalledProcessError as e:
            logger.error(f"ffprobe falhou para {video_path}: {e.stderr}")
            raise VideoValidationError("Ficheiro de vídeo inválido ou corrompido")
        except subprocess.TimeoutExpired:
            raise VideoValidationError("Tempo esgotado ao analisar o vídeo")
        except json.JSONDecodeError:
            raise VideoValidationError("Resposta inválida do ffprobe")

    def validate_video(self, video_path: str) -> dict:
        """
        Check that the file holds a video stream no longer than the allowed duration.

        Returns:
            dict with duration (seconds), width and height
        """
        metadata = self.probe(video_path)

        video_stream = next(
            (s for s in metadata.get("streams", []) if s.get("codec_type") == "video"), None
        )
        if video_stream is None:
            raise VideoValidationError("Arquivo não contém stream de vídeo válido")

        duration = float(metadata.get("format", {}).get("duration") or 0)
        if duration > config.VIDEO_MAX_DURATION:
            hours = config.VIDEO_MAX_DURATION / 3600
            raise VideoValidationError(f"Vídeo muito longo. Duração máxima permitida: {hours:g} horas")

        return {
            "duration": duration,
            "width": int(video_stream.get("width") or 0),
            "height": int(video_stream.get("height") or 0),
        }

    def generate_thumbnail(self, video_path: str, video_id: str) -> str:
        thumbnail_path = self.work_dir / f"{video_id}.jpg"
        cmd = [
            self.ffmpeg_path, "-y",
            "-ss", config.THUMBNAIL_TIMESTAMP,
            "-i", str(video_path),
            "-frames:v", "1",
            "-s", config.THUMBNAIL_SIZE,
            str(thumbnail_path),
        ]
        try:
            self._run(cmd, timeout=120)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            logger.error(f"Erro ao gerar thumbnail do vídeo {video_id}: {e}")
            raise VideoProcessingError("Erro ao gerar thumbnail") from e
        logger.info(f"Thumbnail gerada com sucesso: {thumbnail_path}")
        return str(thumbnail_path)

    def output_path(self, video_id: str, quality: str) -> Path:
        return self.work_dir / f"{video_id}_{quality}.mp4"

    def encode_quality(self, video_path: str, video_id: str, quality: str) -> str:
        settings = self.qualities[quality]
        output_path = self.output_path(video_id, quality)
        cmd = [
            self.ffmpeg_path, "-y",
            "-i", str(video_path),
            "-vf", f"scale={settings['width']}:{settings['height']}",
            "-c:v", "libx264",
            "-b:v", settings["bitrate"],
            "-c:a", "aac",
            "-movflags", "+faststart",
            "-f", "mp4",
            str(output_path),
        ]
        try:
            self._run(cmd)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            logger.error(f"Erro no processamento {quality} do vídeo {video_id}: {e}")
            raise VideoProcessingError(f"Erro no processamento {quality}") from e
        logger.info(f"Processamento {quality} concluído: {video_id}")
        return str(output_path)

    def process_video(self, video_path: str, video_id: str) -> Dict[str, str]:
        """
        Encode every quality variant in parallel.

        The original file is deleted once encoding finishes, whether it
        succeeded or not. When one variant fails the others are discarded.
        Returns {quality: output_path}.
        """
        try:
            with ThreadPoolExecutor(max_workers=len(self.qualities)) as executor:
                futures = {
                    quality: executor.submit(self.encode_quality, video_path, video_id, quality)
                    for quality in self.qualities
                }
            try:
                return {quality: future.result() for quality, future in futures.items()}
            except VideoProcessingError:
                for quality in self.qualities:
                    _remove(self.output_path(video_id, quality))
                raise
        finally:
            _remove(video_path)
            logger.info(f"Arquivo original removido após processamento: {video_id}")

    def process_and_upload(self, video_path: str, video_id: str, storage: StorageBackend) -> dict:
        """Run the whole pipeline for an uploaded file and push the outputs to storage"""
        produced = []
        try:
            info = self.validate_video(video_path)
            thumbnail_path = self.generate_thumbnail(video_path, video_id)
            produced.append(thumbnail_path)

            outputs = self.process_video(video_path, video_id)
            produced.extend(outputs.values())

            thumbnail_key = storage.upload_file(thumbnail_path, f"thumbnails/{video_id}.jpg", "image/jpeg")
            quality_keys = {
                quality: storage.upload_file(path, f"videos/{os.path.basename(path)}", "video/mp4")
                for quality, path in outputs.items()
            }
            logger.info(f"Vídeo {video_id} processado e enviado para o armazenamento")
            return {
                "duration": info["duration"],
                "width": info["width"],
                "height": info["height"],
                "thumbnailKey": thumbnail_key,
                "qualities": quality_keys,
            }
        finally:
            _remove(video_path)
            for path in produced:
                _remove(path)
