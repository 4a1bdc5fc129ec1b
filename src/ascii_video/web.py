"""
Browser Player Page
===================

Minimal HTML page served at /stream/{stream_id}.

The page opens the /ws/stream/{stream_id} frame feed and draws each frame
onto a canvas in a monospace font. All timing comes from the server.
"""

import html
import json


_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
  body {{ margin: 0; background: #343638; color: #fff; font-family: monospace; }}
  #status {{ padding: 8px; font-size: 12px; }}
  canvas {{ display: block; margin: 0 auto; }}
</style>
</head>
<body>
<div id="status">Connecting...</div>
<canvas id="screen"></canvas>
<script>
const streamId = {stream_id};
const canvas = document.getElementById("screen");
const ctx = canvas.getContext("2d");
const status = document.getElementById("status");
const cell = 8;

function draw(frame) {{
  const lines = frame.split("\\n");
  canvas.width = lines[0].length * cell * 0.6;
  canvas.height = lines.length * cell;
  ctx.fillStyle = "#343638";
  ctx.fillRect(0, 0, canvas.width, canvas.height);
  ctx.font = cell + "px monospace";
  ctx.fillStyle = "white";
  ctx.textBaseline = "top";
  lines.forEach((line, y) => ctx.fillText(line, 0, y * cell));
}}

const scheme = location.protocol === "https:" ? "wss://" : "ws://";
const ws = new WebSocket(scheme + location.host + "/ws/stream/" + streamId);
ws.onmessage = (event) => {{
  const msg = JSON.parse(event.data);
  if (msg.type === "meta") {{
    status.textContent = msg.title + " | " + msg.frameCount + " frames @ " + msg.frameRate + " fps";
  }} else if (msg.type === "frame") {{
    draw(msg.frame);
  }}
}};
ws.onclose = (event) => {{
  if (event.code === 4404) status.textContent = "Stream not found or expired";
}};
</script>
</body>
</html>
"""


def render_player_page(stream_id: str, title: str) -> str:
    """Render the browser player for a stream."""
    return _PAGE.format(
        title=html.escape(title),
        stream_id=json.dumps(stream_id),
    )
