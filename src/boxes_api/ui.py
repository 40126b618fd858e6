"""Server-rendered HTML for the garden (the boxes) and the device admin page."""
import json
from datetime import datetime
from html import escape
from typing import Dict, List, Optional
from urllib.parse import quote

from boxes_api.schemas import BoxFileStatus, DeviceHealth
from boxes_api.services.boxes import describe_box
from boxes_api.services.devices import relative_time

PAGE_TITLE = "pvfll_001"

_STYLE = """
      body { margin: 0; font-family: Georgia, serif; background: #fafafa; }
      .header { text-align: center; margin: 20px; font-size: 20px; }
      .boxes { padding: 10px 0 40px; }
      .box { max-width: 24rem; margin: 0 auto 30px; border: 1px solid #000;
             box-shadow: 10px 10px 0 0 #000; background: #4ade80; padding-bottom: 10px; }
      .box-number { font-weight: 900; font-size: 36px; margin: 4px 10px 8px; display: inline-block; }
      .file-icon { color: #f87171; float: right; margin: 10px; font-size: 24px; }
      .status { margin: 2px 10px 10px; border: 1px solid #000; padding: 4px 8px; }
      .button { margin: 0 10px; padding: 4px 8px; border: 1px solid #000; color: #000;
                text-decoration: none; display: inline-block; cursor: pointer; }
      .receive { background: #f87171; }
      .offer { background: #facc15; }
      .disabled { opacity: 0.2; cursor: not-allowed; pointer-events: none; }
      form { margin: 10px 10px 0; }
      table { width: 100%; border-collapse: collapse; background: #fff; }
      th, td { padding: 12px 16px; text-align: left; border-top: 1px solid #eee; }
      .dot { display: inline-block; width: 12px; height: 12px; border-radius: 50%; }
      .dot.connected { background: #22c55e; }
      .dot.disconnected { background: #ef4444; }
      .dot.stale { background: #facc15; }
"""

# Offer: presign, POST the form to the object store, announce.
# refreshBox mirrors describe_box for a single box.
_GARDEN_SCRIPT = """
    <script>
      const BOX_EVENTS = ['file-uploaded', 'file-deleted'];

      function formatSize(size) {
        if (size < 1024) return `${size} B`;
        if (size < 1024 * 1024) return `${(size / 1024).toFixed(1)} KB`;
        return `${(size / (1024 * 1024)).toFixed(1)} MB`;
      }

      async function refreshBox(box) {
        const el = document.getElementById(`box-${box}`);
        if (!el) return;
        const response = await fetch(`/api/boxes/${box}/files`);
        if (!response.ok) return;
        const status = await response.json();
        const full = !status.empty;

        el.querySelector('.status').textContent = full
          ? `file in box${box}: ${status.name} (${formatSize(status.size)})`
          : `box${box}: empty`;
        el.querySelector('.file-icon').hidden = !full;

        const receive = document.createElement(full ? 'a' : 'span');
        receive.className = full ? 'button receive' : 'button receive disabled';
        receive.textContent = 'Receive';
        if (full) {
          receive.href = `/api/boxes/${box}/files/${encodeURIComponent(status.name)}`;
          receive.download = status.name;
          receive.onclick = () => received(box);
        }
        el.querySelector('.receive').replaceWith(receive);

        el.querySelectorAll('form input').forEach((input) => {
          input.disabled = full;
          input.classList.toggle('disabled', full);
        });
      }

      function onBoxEvent(data) { refreshBox(Number(data.boxNumber)); }

      async function offer(form) {
        const box = form.dataset.box;
        const file = form.querySelector('input[type=file]').files[0];
        if (!file) return false;
        if (file.size > Number(form.dataset.maxSize)) {
          alert('File too big!');
          return false;
        }
        const presign = await fetch(`/api/boxes/${box}/files`, {
          method: 'POST',
          headers: {'Content-Type': 'application/json'},
          body: JSON.stringify({fileName: file.name, fileType: file.type || 'application/octet-stream'}),
        });
        if (!presign.ok) { alert('Box is not available'); return false; }
        const {url, fields} = await presign.json();
        const data = new FormData();
        Object.entries(fields).forEach(([k, v]) => data.append(k, v));
        data.append('file', file);
        const upload = await fetch(url, {method: 'POST', body: data});
        if (upload.status !== 204 && upload.status !== 201) { alert('Upload failed'); return false; }
        await fetch(`/api/boxes/${box}/events`, {
          method: 'POST',
          headers: {'Content-Type': 'application/json'},
          body: JSON.stringify({type: 'file-uploaded', fileName: file.name, fileSize: file.size}),
        });
        form.reset();
        refreshBox(box);
        return false;
      }

      function received(box) { setTimeout(() => refreshBox(box), 1000); }
    </script>
"""

_EVENT_SOURCE_SCRIPT = """
    <script>
      const source = new EventSource('/api/events');
      BOX_EVENTS.forEach((name) =>
        source.addEventListener(name, (e) => onBoxEvent(JSON.parse(e.data))));
    </script>
"""

PUSHER_JS_URL = "https://js.pusher.com/8.2.0/pusher.min.js"


def live_updates_script(
    channel: str,
    pusher_key: Optional[str] = None,
    pusher_cluster: Optional[str] = None,
) -> str:
    """
    Subscribe the page to box events.

    With Pusher credentials the browser joins the Pusher channel directly;
    otherwise it listens to the server's own `/api/events` stream.
    """
    if not pusher_key:
        return _EVENT_SOURCE_SCRIPT
    options = json.dumps({"cluster": pusher_cluster})
    return f"""
    <script src="{PUSHER_JS_URL}"></script>
    <script>
      const pusher = new Pusher({json.dumps(pusher_key)}, {options});
      const channel = pusher.subscribe({json.dumps(channel)});
      BOX_EVENTS.forEach((name) => channel.bind(name, onBoxEvent));
    </script>
"""


def _page(title: str, body: str, refresh_seconds: Optional[int] = None) -> str:
    refresh = f'<meta http-equiv="refresh" content="{refresh_seconds}" />' if refresh_seconds else ""
    return f"""
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    {refresh}
    <title>{escape(title)}</title>
    <style>{_STYLE}</style>
  </head>
  <body>
{body}
  </body>
</html>
""".strip()


def render_box(box: int, status: Optional[BoxFileStatus], max_file_size_bytes: int) -> str:
    has_file = status is not None and not status.empty
    icon_hidden = "" if has_file else " hidden"
    icon = f'<span class="file-icon" title="holds a file"{icon_hidden}>&#128196;</span>'

    if has_file:
        href = f"/api/boxes/{box}/files/{quote(status.name)}"
        receive = (
            f'<a class="button receive" href="{escape(href)}" '
            f'download="{escape(status.name)}" onclick="received({box})">Receive</a>'
        )
    else:
        receive = '<span class="button receive disabled">Receive</span>'

    offer_state = "disabled" if status is None or has_file else ""
    offer = (
        f'<form data-box="{box}" data-max-size="{max_file_size_bytes}" '
        f'onsubmit="offer(this); return false;">'
        f'<input type="file" name="fileToUpload" required {offer_state} /> '
        f'<input class="button offer {offer_state}" type="submit" value="Offer" {offer_state} />'
        f"</form>"
    )

    return f"""
    <div class="box" id="box-{box}">
      <span class="box-number">{box}</span>{icon}
      <p class="status">{escape(describe_box(box, status))}</p>
      {receive}
      {offer}
    </div>"""


def render_garden(
    statuses: Dict[int, Optional[BoxFileStatus]],
    max_file_size_bytes: int,
    channel: str = "garden",
    pusher_key: Optional[str] = None,
    pusher_cluster: Optional[str] = None,
) -> str:
    """The main page. A ``None`` status means the box could not be read yet."""
    boxes = "".join(
        render_box(box, statuses[box], max_file_size_bytes) for box in sorted(statuses)
    )
    live = live_updates_script(channel, pusher_key=pusher_key, pusher_cluster=pusher_cluster)
    body = f"""
    <div class="header">&#10047; &#10048; &#10049; &#10051; &#10059;<br />{PAGE_TITLE}<br />&#10059; &#10051; &#10049; &#10048; &#10047;</div>
    <div class="boxes">{boxes}
    </div>
{_GARDEN_SCRIPT}{live}"""
    return _page(PAGE_TITLE, body)


def connection_label(device: DeviceHealth) -> str:
    if device.stale:
        return "Stale"
    return "Connected" if device.connected else "Disconnected"


def render_admin(devices: List[DeviceHealth], now: Optional[datetime] = None) -> str:
    """Device status table; a stale heartbeat overrides the reported connection."""
    if not devices:
        content = '<p>No devices have reported in yet.</p>'
    else:
        rows = []
        for device in devices:
            label = connection_label(device)
            rows.append(
                f"""
          <tr>
            <td><span class="dot {label.lower()}" title="{label}"></span></td>
            <td><code>{escape(device.device_id)}</code></td>
            <td>{label}</td>
            <td>{relative_time(device.timestamp, now=now)}</td>
          </tr>"""
            )
        rows_html = "".join(rows)
        content = f"""
      <table>
        <thead>
          <tr><th>Status</th><th>Device</th><th>Connection</th><th>Last Seen</th></tr>
        </thead>
        <tbody>{rows_html}
        </tbody>
      </table>"""

    body = f"""
    <div style="max-width: 42rem; margin: 0 auto; padding: 32px;">
      <h1>Device Status</h1>{content}
    </div>"""
    return _page(f"{PAGE_TITLE} admin", body, refresh_seconds=30)
