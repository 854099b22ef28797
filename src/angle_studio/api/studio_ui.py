"""Browser UI served by the studio API."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["ui"])


@router.get("/", response_class=HTMLResponse)
async def studio_ui() -> HTMLResponse:
    """Single page studio that consumes the JSON API."""
    return HTMLResponse(_STUDIO_UI_HTML)


_STUDIO_UI_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Angle Studio</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem;
             background: #0b0d12; color: #e5e7eb; }
      h1 { margin-bottom: 0.5rem; }
      .row { margin-bottom: 1rem; }
      .panel { display: grid; grid-template-columns: 320px 1fr; gap: 2rem; }
      textarea { width: 100%; min-height: 90px; }
      select, input, textarea, button { padding: 0.4rem 0.6rem; }
      button { margin-right: 0.5rem; }
      .error { background: #4c1d1d; padding: 0.6rem; border-radius: 6px; }
      .grid { display: grid; gap: 1rem;
              grid-template-columns: repeat(auto-fill, minmax(180px, 1fr)); }
      .card { cursor: pointer; border: 1px solid #1f2937; border-radius: 8px;
              overflow: hidden; }
      .card img { width: 100%; aspect-ratio: 1; object-fit: cover; }
      .card p { font-size: 0.8rem; margin: 0.4rem; }
      .badge { font-size: 0.7rem; background: #4f46e5; padding: 0.1rem 0.4rem;
               border-radius: 4px; }
      .modal { position: fixed; inset: 0; background: rgba(0, 0, 0, 0.92);
               display: none; gap: 1.5rem; padding: 2rem; }
      .modal.open { display: flex; }
      .viewer { flex: 1; overflow: hidden; display: flex;
                align-items: center; justify-content: center; }
      .viewer img { max-width: 100%; max-height: 100%;
                    transition: transform 0.3s ease-out; }
      .sidebar { width: 300px; }
      .hidden { display: none; }
    </style>
  </head>
  <body>
    <h1>Angle Studio</h1>
    <div class="row">
      <button onclick="setMode('EDIT_ANGLES')">Angle Variations</button>
      <button onclick="setMode('GENERATE')">Generate New</button>
    </div>
    <div id="key-prompt" class="row error hidden">
      <b>API Key Required.</b> Select a billing-enabled API key to use the
      high-quality model and upscaling.<br />
      <input id="api-key" type="password" placeholder="API key" />
      <button onclick="selectKey()">Select API Key</button>
    </div>
    <div class="panel">
      <div>
        <div id="source-row" class="row">
          <label>Source Image</label><br />
          <input id="source" type="file" accept="image/*" onchange="upload(event)" />
        </div>
        <div class="row">
          <label id="prompt-label">Editing Instructions (Optional)</label>
          <textarea id="prompt"></textarea>
        </div>
        <div class="row">
          <label>Aspect Ratio</label>
          <select id="ratio">
            <option value="1:1">Square (1:1)</option>
            <option value="16:9">Landscape (16:9)</option>
            <option value="9:16">Portrait (9:16)</option>
            <option value="4:3">Standard (4:3)</option>
            <option value="3:4">Vertical (3:4)</option>
          </select>
          <span id="quality-row" class="hidden">
            <label>Size (Quality)</label>
            <select id="quality">
              <option value="1K">Standard (1K)</option>
              <option value="2K">High (2K)</option>
              <option value="4K">Ultra (4K)</option>
            </select>
          </span>
        </div>
        <button id="run" onclick="runBatch()">Generate Variations</button>
        <div id="error" class="row error hidden"></div>
      </div>
      <div>
        <h2 id="results-title">Preview Area</h2>
        <div id="grid" class="grid"></div>
      </div>
    </div>
    <div id="modal" class="modal">
      <div class="viewer" onclick="toggleZoom()">
        <img id="viewer-img" alt="" />
      </div>
      <div class="sidebar">
        <h3>Image Details</h3>
        <p id="viewer-prompt"></p>
        <p><span id="viewer-model" class="badge"></span></p>
        <button id="upscale" onclick="upscale()">Upscale to 4K</button>
        <a id="download" href="#">Download Image</a>
        <button onclick="closeViewer()">Close</button>
      </div>
    </div>
    <script>
      let mode = 'EDIT_ANGLES';
      let viewing = null;
      let zoom = 1;

      function setMode(next) {
        mode = next;
        const generate = mode === 'GENERATE';
        document.getElementById('source-row').classList.toggle('hidden', generate);
        document.getElementById('quality-row').classList.toggle('hidden', !generate);
        document.getElementById('prompt-label').textContent = generate
          ? 'Image Prompt' : 'Editing Instructions (Optional)';
        document.getElementById('run').textContent = generate
          ? 'Generate Image' : 'Generate Variations';
      }

      async function call(path, options) {
        const res = await fetch(path, Object.assign({
          headers: { 'Content-Type': 'application/json' }
        }, options || {}));
        const data = await res.json().catch(() => ({}));
        if (!res.ok) {
          throw new Error(data.detail || ('Error: ' + res.status));
        }
        return data;
      }

      async function refresh() {
        render(await call('/state'));
      }

      function render(state) {
        document.getElementById('key-prompt').classList.toggle('hidden', state.authorized);
        const error = document.getElementById('error');
        error.textContent = state.error || '';
        error.classList.toggle('hidden', !state.error);
        const title = document.getElementById('results-title');
        title.textContent = state.images.length
          ? state.images.length + ' image' + (state.images.length !== 1 ? 's' : '') + ' generated'
          : 'Preview Area';
        const grid = document.getElementById('grid');
        grid.innerHTML = '';
        for (const image of state.images) {
          const card = document.createElement('div');
          card.className = 'card';
          card.onclick = () => openViewer(image.id);
          card.innerHTML = '<img src="' + image.content_url + '" />'
            + '<p><span class="badge">' + image.badge + '</span></p>';
          const caption = document.createElement('p');
          caption.textContent = image.prompt;
          card.appendChild(caption);
          grid.appendChild(card);
        }
      }

      function upload(event) {
        const file = event.target.files[0];
        if (!file) return;
        const reader = new FileReader();
        reader.onloadend = async () => {
          render(await call('/source', {
            method: 'POST', body: JSON.stringify({ image: reader.result })
          }));
        };
        reader.readAsDataURL(file);
      }

      async function runBatch() {
        const button = document.getElementById('run');
        button.disabled = true;
        document.getElementById('results-title').textContent = mode === 'GENERATE'
          ? 'Creating your masterpiece...' : 'Generating 7 angle variations...';
        try {
          await call('/batches', {
            method: 'POST',
            body: JSON.stringify({
              mode: mode,
              prompt: document.getElementById('prompt').value,
              aspect_ratio: document.getElementById('ratio').value,
              quality: document.getElementById('quality').value
            })
          });
        } catch (err) {
          console.error(err);
        } finally {
          button.disabled = false;
          await refresh();
        }
      }

      async function openViewer(id) {
        const image = await call('/images/' + id);
        viewing = image;
        zoom = 1;
        const img = document.getElementById('viewer-img');
        img.src = image.content_url;
        img.style.transform = 'scale(1)';
        document.getElementById('viewer-prompt').textContent = image.prompt;
        document.getElementById('viewer-model').textContent = image.model;
        document.getElementById('upscale').disabled = image.is_upscaled;
        document.getElementById('download').href = image.download_url;
        document.getElementById('modal').classList.add('open');
      }

      function toggleZoom() {
        zoom = zoom === 1 ? 2.5 : 1;
        document.getElementById('viewer-img').style.transform = 'scale(' + zoom + ')';
      }

      async function upscale() {
        const button = document.getElementById('upscale');
        button.disabled = true;
        try {
          const image = await call('/images/' + viewing.id + '/upscale', { method: 'POST' });
          await openViewer(image.id);
        } catch (err) {
          button.disabled = viewing.is_upscaled;
          console.error(err);
        }
        await refresh();
      }

      async function closeViewer() {
        await call('/viewer', { method: 'DELETE' });
        document.getElementById('modal').classList.remove('open');
        viewing = null;
      }

      async function selectKey() {
        const value = document.getElementById('api-key').value;
        await call('/auth/key', {
          method: 'POST', body: JSON.stringify({ api_key: value || null })
        });
        await refresh();
      }

      refresh();
    </script>
  </body>
</html>
"""
