"""
Main Entry Point for the Driver Drowsiness & Faint Guard

Per frame: capture -> (optional low-light enhancement) -> face landmarks ->
detection session tick -> overlay.

Keys:
  q  quit
  r  "I'm awake" (clear an active alert)
  s  toggle sound
  l  toggle low-light mode
  d  stop/start detection

Run with: python -m drowsy_guard.main
"""

import argparse
import logging
import time

import cv2

from .camera_utils import open_camera
from .config import (
    DISPATCH_COOLDOWN_MS,
    DRAW_STATUS_OVERLAY,
    STATUS_PRINT_INTERVAL_FRAMES,
    DetectorSettings,
)
from .data_structures import AlertKind, AlertState
from .dispatcher import AlertDispatcher
from .enhancer import enhance_frame
from .exceptions import CameraError, LandmarkerInitError
from .face_detector import FaceDetector
from .geolocation import IpGeolocationProvider, parse_location
from .session import DetectionSession
from .siren import SirenController
from .transport import HttpAlertTransport, SimulatedAlertTransport

logger = logging.getLogger("drowsy_guard")

_ALERT_BANNERS = {
    AlertState.DROWSINESS_ACTIVE: "DROWSINESS ALERT!",
    AlertState.FAINT_ACTIVE: "CRITICAL ALERT: NO FACE",
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Driver drowsiness and faint detection")
    parser.add_argument("--camera", default=None,
                        help="camera index or IP camera URL (default: probe local cameras)")
    parser.add_argument("--threshold", type=float, default=DetectorSettings.ear_threshold,
                        help="eye closure EAR threshold (0.15-0.35)")
    parser.add_argument("--alert-ms", type=float, default=DetectorSettings.drowsiness_delay_ms,
                        help="eyes closed this long => drowsiness alert (500-3000)")
    parser.add_argument("--faint-ms", type=float, default=DetectorSettings.faint_timeout_ms,
                        help="no face this long => faint alert (5000-60000)")
    parser.add_argument("--contacts", default="",
                        help="emergency contacts separated by comma, semicolon or newline")
    parser.add_argument("--police", default=DetectorSettings.police_contact,
                        help="police contact number")
    parser.add_argument("--alert-url", default=None,
                        help="alert server base URL; alerts are simulated locally when omitted")
    parser.add_argument("--location", type=parse_location, default=None,
                        help="fixed 'lat,lon' instead of an IP-based lookup")
    parser.add_argument("--no-auto-dispatch", action="store_true", help="do not send remote alerts")
    parser.add_argument("--mute", action="store_true", help="start with sound disabled")
    parser.add_argument("--low-light", action="store_true", help="start in low-light mode")
    parser.add_argument("--per-kind-cooldown", action="store_true",
                        help="separate dispatch cooldown for drowsiness and faint alerts")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def _camera_source(value):
    if value is None:
        return None
    return int(value) if value.isdigit() else value


def draw_overlay(frame, result, dispatcher, settings, fps):
    """Minimal status overlay for the operator window."""
    h, w = frame.shape[:2]
    if result is None:
        cv2.putText(frame, "Detection paused", (30, 50),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.9, (200, 200, 200), 2)
        return

    if result.alert_state.is_active:
        overlay = frame.copy()
        cv2.rectangle(overlay, (0, 0), (w, h), (0, 0, 255), -1)
        cv2.addWeighted(overlay, 0.3, frame, 0.7, 0, frame)
        cv2.rectangle(frame, (5, 5), (w - 5, h - 5), (0, 0, 255), 10)
        cv2.putText(frame, _ALERT_BANNERS[result.alert_state], (30, 60),
                    cv2.FONT_HERSHEY_SIMPLEX, 1.2, (0, 0, 255), 3)

    ear = result.eye_sample.combined if result.eye_sample is not None else 0.0
    lines = [
        f"FPS: {fps:.1f}",
        f"EAR: {ear:.3f} (threshold {settings.ear_threshold:.2f})",
        f"Eyes closed: {result.closure_ms / 1000:.1f}s / {settings.drowsiness_delay_ms / 1000:.1f}s",
        f"No face: {result.absence_ms / 1000:.1f}s / {settings.faint_timeout_ms / 1000:.1f}s",
        f"Vehicle: {result.vehicle.speed:.1f} km/h | {result.vehicle.lane.value} lane | {result.vehicle.action}",
        f"Sound: {'on' if settings.sound_enabled else 'off'} | Low-light: {'on' if settings.low_light_mode else 'off'}",
    ]
    if dispatcher.status is not None:
        lines.append(f"Dispatch: {dispatcher.status.details}")
    for i, text in enumerate(lines):
        cv2.putText(frame, text, (30, h - 20 - 25 * (len(lines) - 1 - i)),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.55, (255, 255, 255), 2)


def main(argv=None):
    """Main detection loop."""
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = DetectorSettings(
        ear_threshold=args.threshold,
        drowsiness_delay_ms=args.alert_ms,
        faint_timeout_ms=args.faint_ms,
        auto_dispatch=not args.no_auto_dispatch,
        sound_enabled=not args.mute,
        emergency_contacts=args.contacts,
        police_contact=args.police,
        low_light_mode=args.low_light,
    )

    print("Starting Driver Drowsiness & Faint Guard...")
    print("=" * 70)
    print(f"EAR threshold: {settings.ear_threshold}")
    print(f"Drowsiness delay: {settings.drowsiness_delay_ms:.0f}ms | Faint timeout: {settings.faint_timeout_ms:.0f}ms")
    print("Keys: q quit | r I'm awake | s sound | l low-light | d stop/start detection")
    print("=" * 70)

    try:
        detector = FaceDetector()
    except LandmarkerInitError as e:
        logger.error("%s Please retry.", e)
        return 1
    try:
        cap = open_camera(_camera_source(args.camera))
    except CameraError as e:
        logger.error("%s", e)
        detector.close()
        return 1

    transport = HttpAlertTransport(args.alert_url) if args.alert_url else SimulatedAlertTransport()
    geolocation = args.location or IpGeolocationProvider()
    siren = SirenController(sound_enabled=settings.sound_enabled)
    dispatcher = AlertDispatcher(settings, transport, geolocation,
                                 cooldown_ms=DISPATCH_COOLDOWN_MS,
                                 shared_cooldown=not args.per_kind_cooldown)
    session = DetectionSession(settings, siren, dispatcher)
    session.start()

    frame_count = 0
    start_time = time.time()
    session_start_time = start_time
    consecutive_failures = 0
    last_warning_time = 0
    result = None

    try:
        while True:
            ret, frame = cap.read()

            # Validate frame
            if not ret or frame is None or frame.size == 0:
                consecutive_failures += 1

                # Few transient failures: silently retry (common camera glitches)
                if consecutive_failures <= 5:
                    time.sleep(0.01)
                    continue

                # Moderate failures: warn occasionally
                if consecutive_failures <= 20:
                    current_time = time.time()
                    if current_time - last_warning_time > 5.0:
                        logger.warning("Camera glitch detected (%d failures), retrying...",
                                       consecutive_failures)
                        last_warning_time = current_time
                    time.sleep(0.05)
                    continue

                # Many consecutive failures: try to re-open the camera
                logger.error("Camera appears stuck, attempting to re-open...")
                cap.release()
                time.sleep(0.5)
                try:
                    cap = open_camera(_camera_source(args.camera))
                except CameraError as e:
                    logger.error("Failed to re-open camera: %s", e)
                    break
                consecutive_failures = 0
                last_warning_time = 0
                logger.info("Camera successfully re-opened, resuming...")
                continue

            consecutive_failures = 0
            now_ms = time.monotonic() * 1000.0

            if settings.low_light_mode:
                frame = enhance_frame(frame, settings.brightness, settings.contrast, settings.gamma)

            if session.active:
                try:
                    observation = detector.detect(frame, now_ms)
                except Exception:
                    logger.exception("Landmark detection failed; skipping frame")
                    observation = None
                result = session.tick(observation) if observation is not None else result
            else:
                result = None

            frame_count += 1
            elapsed = time.time() - start_time
            fps = frame_count / elapsed if elapsed > 0 else 0.0

            if DRAW_STATUS_OVERLAY:
                draw_overlay(frame, result, dispatcher, settings, fps)
            cv2.imshow("Driver Drowsiness & Faint Guard", frame)

            if frame_count % STATUS_PRINT_INTERVAL_FRAMES == 0 and result is not None:
                if result.eye_sample is not None:
                    print(f"FPS: {fps:.1f} | State: {result.alert_state.value} | "
                          f"EAR: {result.eye_sample.combined:.3f} | "
                          f"Speed: {result.vehicle.speed:.1f} km/h")
                else:
                    print(f"FPS: {fps:.1f} | No face detected ({result.absence_ms / 1000:.1f}s)")

            # Handle keyboard input
            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            elif key == ord('r'):
                if session.manual_override(time.monotonic() * 1000.0) is not None:
                    print("Alert cleared: driver confirmed awake")
            elif key == ord('s'):
                settings.sound_enabled = not settings.sound_enabled
                siren.set_sound_enabled(settings.sound_enabled)
                if settings.sound_enabled and session.alert_state.is_active:
                    siren.start()
            elif key == ord('l'):
                settings.low_light_mode = not settings.low_light_mode
            elif key == ord('d'):
                if session.active:
                    session.stop()
                else:
                    session.start()

    finally:
        session_duration = time.time() - session_start_time
        counts = session.engine.activation_counts
        session.stop()
        siren.close()
        detector.close()
        cap.release()
        cv2.destroyAllWindows()
        print("Shutdown complete.")
        print(f"Session Summary: Duration={session_duration:.1f}s, "
              f"Drowsiness alerts={counts[AlertKind.DROWSINESS]}, "
              f"Faint alerts={counts[AlertKind.FAINT]}, "
              f"Alerts dispatched={dispatcher.sent_count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
