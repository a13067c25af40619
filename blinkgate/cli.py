from __future__ import annotations
import typer, asyncio, logging
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from pathlib import Path
from typing import Optional
from pydantic import ValidationError
from .fuse.config import load_config
from .fuse.state import BlinkMonitor
from .runtime.events import Event, FrameObservation, ws_broadcast

app = typer.Typer(add_completion=False, help="blinkgate: blink counting with adaptive detector throttling")
log = logging.getLogger("blinkgate")

def _setup_logging(level: str):
    logging.basicConfig(level=level.upper(), format="%(message)s", datefmt="[%X]",
                        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
                        force=True)

def _draw(img, obs: FrameObservation, closed: bool):
    import cv2
    import numpy as np
    if obs.bbox is None: return
    h,w = img.shape[:2]
    x0,y0,x1,y1 = obs.bbox
    cv2.rectangle(img, (int(x0*w),int(y0*h)), (int(x1*w),int(y1*h)), (255,0,0), 1)
    color = (0,0,255) if closed else (0,255,0)
    for eye in (obs.left_eye, obs.right_eye):
        if not eye: continue
        rel = np.array(eye, dtype=float)
        px = np.stack([(x0 + rel[:,0]*(x1-x0))*w, (y0 + rel[:,1]*(y1-y0))*h], axis=1).astype(np.int32)
        cv2.polylines(img, [px], True, color, 1)

async def _run_alongside(main, side):
    """
    Run `main` with a background `side` coroutine. A side failure (e.g. the
    websocket port is taken) stops main and is re-raised; otherwise side is
    cancelled and awaited once main is done.
    """
    main_t = asyncio.ensure_future(main)
    side_t = asyncio.ensure_future(side)
    try:
        await asyncio.wait({main_t, side_t}, return_when=asyncio.FIRST_COMPLETED)
        if side_t.done() and not main_t.done():
            main_t.cancel()
            await asyncio.gather(main_t, return_exceptions=True)
            side_t.result()
            raise RuntimeError("background task exited early")
        return main_t.result()
    finally:
        for t in (main_t, side_t):
            if not t.done():
                t.cancel()
        await asyncio.gather(main_t, side_t, return_exceptions=True)

@app.command()
def run(config: Optional[str]=typer.Option(None, help="YAML file with blink tunables"),
        camera: int=0, width: int=640, height: int=480,
        ws: bool=typer.Option(False, help="broadcast events over WebSocket"),
        port: int=8765,
        preview: bool=typer.Option(False, help="show camera preview with eye contours"),
        log_level: str=typer.Option("INFO")):
    """
    Live camera: count blinks, skipping detector calls inside the idle window. Prints JSONL events.
    """
    _setup_logging(log_level)
    from .io.camera import frames
    from .eye.landmarks import FaceLandmarks
    mon = BlinkMonitor(load_config(config))
    faces = FaceLandmarks()
    queue: "asyncio.Queue[str]" = asyncio.Queue()

    async def producer():
        import cv2
        for t, img in frames(camera, width, height):
            events = mon.tick(t)
            if mon.admit(t):
                obs = faces(img, t)
                events += mon.update(obs)
                if ws:
                    await queue.put(Event(ts=t, type="snapshot", snapshot=mon.snapshot).model_dump_json())
                if preview:
                    _draw(img, obs, mon.snapshot.is_eye_closed)
            for ev in events:
                line = ev.model_dump_json()
                typer.echo(line)
                if ws: await queue.put(line)
            if preview:
                s = mon.snapshot
                cv2.putText(img, f"blinks {s.blink_count}  max/s {s.max_detections_per_second}",
                            (10,24), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255,255,255), 1)
                cv2.imshow("blinkgate", img)
                # press q to quit
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
            await asyncio.sleep(0)

    async def main():
        if ws:
            await _run_alongside(producer(), ws_broadcast(queue, "0.0.0.0", port))
        else:
            await producer()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        log.info("interrupted")
    finally:
        if preview:
            import cv2
            cv2.destroyAllWindows()
    print("[green]Final[/green]", mon.snapshot.model_dump())

@app.command()
def replay(path: Path = typer.Argument(..., help="JSONL file of frame observations"),
           config: Optional[str]=typer.Option(None, help="YAML file with blink tunables"),
           gate: bool=typer.Option(True, help="apply the idle gate to recorded frames"),
           log_level: str=typer.Option("WARNING")):
    """
    Feed recorded observations through the blink monitor and print JSONL events.
    """
    _setup_logging(log_level)
    if not path.exists():
        print(f"[red]No such file[/red] {path}")
        raise typer.Exit(code=1)
    mon = BlinkMonitor(load_config(config))
    with path.open("r") as f:
        for n, line in enumerate(f, 1):
            line = line.strip()
            if not line: continue
            try:
                obs = FrameObservation.model_validate_json(line)
            except ValidationError as e:
                log.warning("line %d: bad observation, skipped (%d errors)", n, e.error_count())
                continue
            events = mon.tick(obs.timestamp)
            if not gate or mon.admit(obs.timestamp):
                events += mon.update(obs)
            for ev in events:
                typer.echo(ev.model_dump_json())
    typer.echo(Event(ts=mon.snapshot.timestamp or 0.0, type="snapshot", snapshot=mon.snapshot).model_dump_json())

if __name__ == "__main__":
    app()
