"""HTTP routes: upload a source, review segments, process clips, render narration."""

import json
import logging
import queue
import shutil
import threading
import uuid
from pathlib import Path

from flask import Blueprint, Response, current_app, jsonify, request, send_file

from viralclip import ffutil
from viralclip.analyzers.oracle import parse_segment_proposals, propose_segments
from viralclip.analyzers.segments import plan_segments, revise_segment
from viralclip.editors.narration import render_narrated_video
from viralclip.engine import process_segment
from viralclip.errors import InvalidInput, PipelineError
from viralclip.ingest import download_video, is_supported_url
from viralclip.models import MediaSegment, Orientation

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}


def _error(e: PipelineError):
    status = 400 if isinstance(e, InvalidInput) else 500
    return jsonify({"error": str(e), "category": e.category}), status


def _segment_json(seg: MediaSegment) -> dict:
    return {"startTime": seg.start, "endTime": seg.end, "description": seg.reason}


def _new_job(**fields) -> tuple[str, dict]:
    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)
    job = {"dir": job_dir, "status": "uploaded", "segments": [], **fields}
    _jobs[job_id] = job
    return job_id, job


def _run_in_background(job: dict, work) -> None:
    """Run work(on_progress) in a thread, streaming progress to the job queue."""
    progress_queue: queue.Queue = queue.Queue()
    job["progress_queue"] = progress_queue
    job["status"] = "processing"
    job["error"] = None

    def run():
        try:
            def on_progress(stage: str, frac: float):
                progress_queue.put({"stage": stage, "progress": round(frac, 3)})

            job["result"] = work(on_progress)
            job["status"] = "done"
        except PipelineError as e:
            logger.error("Job failed: %s", e)
            job["status"] = "error"
            job["error"] = str(e)
            job["error_category"] = e.category
        except Exception as e:
            logger.exception("Job crashed")
            job["status"] = "error"
            job["error"] = str(e)
            job["error_category"] = "internal_error"
        finally:
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True).start()


def _plan_job(job_id: str, job: dict, input_path: Path, raw: str | None):
    """Attach the source to *job* and propose its segments.

    On failure the job and its directory are discarded.
    """
    job["input_path"] = input_path
    oracle = current_app.config.get("ORACLE")
    try:
        if not raw and hasattr(oracle, "propose_segments"):
            duration = ffutil.probe_duration(input_path)
            segments = propose_segments(oracle, input_path, duration)
        else:
            proposals = parse_segment_proposals(raw) if raw else []
            duration, segments = plan_segments(input_path, proposals)
    except PipelineError as e:
        _discard_job(job_id)
        return _error(e)

    job["duration"] = duration
    job["segments"] = segments
    return jsonify({
        "job_id": job_id,
        "filename": job["filename"],
        "duration": duration,
        "segments": [_segment_json(s) for s in segments],
    })


def _discard_job(job_id: str) -> None:
    job = _jobs.pop(job_id)
    shutil.rmtree(job["dir"], ignore_errors=True)


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    f = request.files["file"]
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400

    job_id, job = _new_job(filename=f.filename)
    ext = Path(f.filename).suffix or ".mp4"
    input_path = job["dir"] / f"input{ext}"
    f.save(input_path)
    return _plan_job(job_id, job, input_path, request.form.get("proposals"))


@bp.route("/api/upload-url", methods=["POST"])
def upload_url():
    body = request.get_json(silent=True) or {}
    url = str(body.get("url") or "").strip()
    if not url:
        return jsonify({"error": "URL is required"}), 400
    if not is_supported_url(url):
        return jsonify({"error": "Unsupported video URL", "category": "invalid_input"}), 400

    job_id, job = _new_job(filename=None)
    try:
        input_path = download_video(url, job["dir"])
    except PipelineError as e:
        _discard_job(job_id)
        return _error(e)

    job["filename"] = input_path.name
    job["source_url"] = url
    raw = body.get("proposals")
    if raw is not None and not isinstance(raw, str):
        raw = json.dumps(raw)
    return _plan_job(job_id, job, input_path, raw)


@bp.route("/api/jobs/<job_id>/segments/<int:index>", methods=["PUT"])
def update_segment(job_id: str, index: int):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    if not 0 <= index < len(job["segments"]):
        return jsonify({"error": "Segment not found"}), 404

    body = request.get_json() or {}
    try:
        revised = revise_segment(
            job["segments"][index],
            start=body.get("startTime"),
            end=body.get("endTime"),
            reason=body.get("description"),
            source_duration=job.get("duration"),
        )
    except PipelineError as e:
        return _error(e)
    except (TypeError, ValueError):
        return jsonify({"error": "Invalid cut times"}), 400

    job["segments"][index] = revised
    return jsonify(_segment_json(revised))


@bp.route("/api/jobs/<job_id>/segments/<int:index>/process", methods=["POST"])
def start_process(job_id: str, index: int):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    if job["status"] == "processing":
        return jsonify({"error": f"Job is already {job['status']}"}), 409
    if not 0 <= index < len(job["segments"]):
        return jsonify({"error": "Segment not found"}), 404

    config = request.get_json() or {}
    try:
        orientation = Orientation.parse(config.get("format", ""))
    except InvalidInput as e:
        return _error(e)

    segment = job["segments"][index]
    oracle = current_app.config.get("ORACLE")
    language = config.get("language", "pt")

    def work(on_progress):
        artifact = process_segment(
            job["input_path"],
            segment,
            orientation,
            job["dir"] / "processed",
            language=language,
            oracle=oracle if hasattr(oracle, "transcribe") else None,
            on_progress=on_progress,
        )
        return {
            "output_path": str(artifact.output_path),
            "format": artifact.orientation.value,
            "subtitles": artifact.subtitles,
            "subtitle_source": artifact.subtitle_source,
            "segment": _segment_json(segment),
        }

    _run_in_background(job, work)
    return jsonify({"status": "started"})


@bp.route("/api/render", methods=["POST"])
def start_render():
    body = request.get_json() or {}
    text = (body.get("text") or "").strip()
    if not text:
        return jsonify({"error": "Text is required"}), 400
    try:
        orientation = Orientation.parse(body.get("format", "vertical"))
    except InvalidInput as e:
        return _error(e)

    job_id, job = _new_job(filename=None)

    def work(on_progress):
        on_progress("Rendering narrated video", 0.0)
        narration = render_narrated_video(text, orientation, job["dir"])
        return {
            "output_path": str(narration.output_path),
            "format": orientation.value,
            "duration": narration.duration,
        }

    _run_in_background(job, work)
    return jsonify({"job_id": job_id, "status": "started"})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    q = job.get("progress_queue")

    if q is None:
        return jsonify({"error": "No processing in progress"}), 409

    def generate():
        while True:
            try:
                msg = q.get(timeout=120)
            except queue.Empty:
                yield "data: {\"error\": \"timeout\"}\n\n"
                break
            if msg is None:
                if job["status"] == "error":
                    data = json.dumps({"error": job["error"], "category": job.get("error_category")})
                else:
                    data = json.dumps({
                        "stage": "complete",
                        "progress": 1.0,
                        "result": job.get("result"),
                    })
                yield f"data: {data}\n\n"
                break
            yield f"data: {json.dumps(msg)}\n\n"

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/result")
def download_result(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    output_path = Path(job["result"]["output_path"])
    if not output_path.exists():
        return jsonify({"error": "File not found"}), 404
    return send_file(output_path, as_attachment=True, download_name=output_path.name)


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    resp = {
        "status": job["status"],
        "filename": job.get("filename"),
        "segments": [_segment_json(s) for s in job["segments"]],
    }
    if job["status"] == "done":
        resp["result"] = job.get("result")
    if job["status"] == "error":
        resp["error"] = job.get("error")
        resp["category"] = job.get("error_category")
    return jsonify(resp)
