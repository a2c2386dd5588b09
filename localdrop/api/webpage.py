"""The browser page served at ``/``."""

import html
from string import Template

from localdrop.config import APP_NAME

_PAGE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>$app_name</title>
  <style>
    * { box-sizing: border-box; margin: 0; padding: 0; }
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
      background: linear-gradient(135deg, #1a1a2e 0%, #16213e 100%);
      min-height: 100vh; color: #fff; padding: 20px;
    }
    .container { max-width: 800px; margin: 0 auto; }
    header { text-align: center; padding: 30px 0; }
    header h1 { font-size: 2.5rem; color: #4ade80; }
    header p { color: #94a3b8; }
    .status-bar {
      display: flex; align-items: center; justify-content: center; gap: 10px;
      background: rgba(74, 222, 128, 0.1); border: 1px solid rgba(74, 222, 128, 0.3);
      border-radius: 12px; padding: 12px 20px; margin-bottom: 30px;
    }
    .status-dot { width: 10px; height: 10px; background: #4ade80; border-radius: 50%; }
    .card {
      background: rgba(255, 255, 255, 0.05); border: 1px solid rgba(255, 255, 255, 0.1);
      border-radius: 16px; margin-bottom: 24px; overflow: hidden;
    }
    .card-header { padding: 16px 20px; border-bottom: 1px solid rgba(255, 255, 255, 0.1); }
    .card-body { padding: 20px; }
    .upload-zone {
      border: 2px dashed rgba(74, 222, 128, 0.4); border-radius: 12px;
      padding: 40px 20px; text-align: center; cursor: pointer;
    }
    .upload-zone.dragover { border-color: #4ade80; background: rgba(74, 222, 128, 0.1); }
    .file-input { display: none; }
    .progress-bar { height: 4px; background: rgba(255,255,255,0.1); margin-top: 16px; display: none; }
    .progress-bar.active { display: block; }
    .progress-fill { height: 100%; width: 0%; background: #4ade80; transition: width 0.2s; }
    .file-list { list-style: none; }
    .file-item {
      display: flex; align-items: center; gap: 12px; padding: 12px;
      border-radius: 10px; background: rgba(255, 255, 255, 0.03); margin-bottom: 8px;
    }
    .file-info { flex: 1; min-width: 0; }
    .file-name { overflow: hidden; text-overflow: ellipsis; white-space: nowrap; }
    .file-size { color: #94a3b8; font-size: 0.85rem; }
    .btn { border: none; border-radius: 8px; padding: 8px 14px; cursor: pointer; color: #fff; }
    .btn-primary { background: #4ade80; color: #0f172a; }
    .btn-danger { background: rgba(239, 68, 68, 0.8); }
    .empty-state { text-align: center; color: #64748b; padding: 30px; }
    .toast {
      position: fixed; bottom: 20px; left: 50%; transform: translateX(-50%);
      padding: 12px 20px; border-radius: 10px; background: #334155; opacity: 0;
      transition: opacity 0.3s;
    }
    .toast.show { opacity: 1; }
    .toast.success { background: #15803d; }
    .toast.error { background: #b91c1c; }
  </style>
</head>
<body>
  <div class="container">
    <header>
      <h1>$app_name</h1>
      <p>Share files between your phone and PC</p>
    </header>

    <div class="status-bar">
      <div class="status-dot"></div>
      <span>Connected to <strong>$ip:$port</strong></span>
    </div>

    <div class="card">
      <div class="card-header"><h2>Upload Files to Phone</h2></div>
      <div class="card-body">
        <div class="upload-zone" id="uploadZone">
          <h3>Drop files here</h3>
          <p>or click to browse</p>
          <input type="file" class="file-input" id="fileInput" multiple>
        </div>
        <div class="progress-bar" id="uploadProgress"><div class="progress-fill" id="progressFill"></div></div>
      </div>
    </div>

    <div class="card">
      <div class="card-header"><h2>Files on Phone</h2></div>
      <div class="card-body">
        <div class="empty-state" id="emptyState"><p>No files shared yet</p></div>
        <ul class="file-list" id="fileList"></ul>
      </div>
    </div>
  </div>

  <div class="toast" id="toast"></div>

  <script>
    const API_BASE = '';

    function formatSize(bytes) {
      if (bytes === 0) return '0 B';
      const k = 1024;
      const sizes = ['B', 'KB', 'MB', 'GB'];
      const i = Math.floor(Math.log(bytes) / Math.log(k));
      return parseFloat((bytes / Math.pow(k, i)).toFixed(1)) + ' ' + sizes[i];
    }

    function escapeHtml(text) {
      const div = document.createElement('div');
      div.textContent = text;
      return div.innerHTML;
    }

    function showToast(message, type = 'info') {
      const toast = document.getElementById('toast');
      toast.textContent = message;
      toast.className = 'toast ' + type + ' show';
      setTimeout(() => toast.classList.remove('show'), 3000);
    }

    function saveHref(href, filename) {
      const a = document.createElement('a');
      a.href = href;
      a.download = filename;
      document.body.appendChild(a);
      a.click();
      document.body.removeChild(a);
    }

    // The server answers with either the raw file or {success, filename, dataUri}.
    async function downloadFile(downloadUrl, filename) {
      try {
        showToast('Downloading...');
        const response = await fetch(API_BASE + downloadUrl);
        const contentType = response.headers.get('Content-Type') || '';
        if (contentType.startsWith('application/json')) {
          const data = await response.json();
          if (!data.success || !data.dataUri) throw new Error(data.error || 'Download failed');
          saveHref(data.dataUri, data.filename || filename);
        } else {
          if (!response.ok) throw new Error('HTTP ' + response.status);
          const url = URL.createObjectURL(await response.blob());
          saveHref(url, filename);
          setTimeout(() => URL.revokeObjectURL(url), 1000);
        }
        showToast('Download complete!', 'success');
      } catch (error) {
        showToast('Download failed: ' + error.message, 'error');
      }
    }

    async function removeFile(id) {
      try {
        await fetch(API_BASE + '/api/files/' + encodeURIComponent(id), { method: 'DELETE' });
        loadFiles();
      } catch (error) {
        showToast('Remove failed: ' + error.message, 'error');
      }
    }

    async function loadFiles() {
      try {
        const response = await fetch(API_BASE + '/api/files');
        const data = await response.json();
        const fileList = document.getElementById('fileList');
        const emptyState = document.getElementById('emptyState');
        fileList.innerHTML = '';

        if (!data.files || data.files.length === 0) {
          emptyState.style.display = 'block';
          return;
        }
        emptyState.style.display = 'none';
        for (const file of data.files) {
          const li = document.createElement('li');
          li.className = 'file-item';
          li.innerHTML =
            '<div class="file-info">' +
              '<div class="file-name">' + escapeHtml(file.name) + '</div>' +
              '<div class="file-size">' + formatSize(file.size) + ' &middot; ' + file.direction + '</div>' +
            '</div>' +
            '<button class="btn btn-primary">Download</button>' +
            '<button class="btn btn-danger">Remove</button>';
          const buttons = li.querySelectorAll('button');
          buttons[0].onclick = () => downloadFile(file.downloadUrl, file.name);
          buttons[1].onclick = () => removeFile(file.id);
          fileList.appendChild(li);
        }
      } catch (error) {
        showToast('Failed to load files', 'error');
      }
    }

    function uploadFile(file) {
      const progressBar = document.getElementById('uploadProgress');
      const progressFill = document.getElementById('progressFill');
      progressBar.classList.add('active');
      progressFill.style.width = '0%';

      const form = new FormData();
      form.append('file', file, file.name);

      const xhr = new XMLHttpRequest();
      xhr.open('POST', API_BASE + '/api/upload');
      xhr.upload.onprogress = (e) => {
        if (e.lengthComputable) progressFill.style.width = (e.loaded / e.total) * 100 + '%';
      };
      xhr.onload = () => {
        let data = {};
        try { data = JSON.parse(xhr.responseText); } catch (e) {}
        if (xhr.status === 200 && data.success) {
          showToast('File uploaded successfully!', 'success');
          loadFiles();
        } else {
          showToast('Upload failed: ' + (data.error || xhr.status), 'error');
        }
        setTimeout(() => progressBar.classList.remove('active'), 1000);
      };
      xhr.onerror = () => {
        showToast('Upload failed', 'error');
        progressBar.classList.remove('active');
      };
      xhr.send(form);
    }

    const uploadZone = document.getElementById('uploadZone');
    const fileInput = document.getElementById('fileInput');
    uploadZone.addEventListener('click', () => fileInput.click());
    uploadZone.addEventListener('dragover', (e) => { e.preventDefault(); uploadZone.classList.add('dragover'); });
    uploadZone.addEventListener('dragleave', () => uploadZone.classList.remove('dragover'));
    uploadZone.addEventListener('drop', (e) => {
      e.preventDefault();
      uploadZone.classList.remove('dragover');
      for (const file of e.dataTransfer.files) uploadFile(file);
    });
    fileInput.addEventListener('change', (e) => {
      for (const file of e.target.files) uploadFile(file);
      fileInput.value = '';
    });

    loadFiles();
    setInterval(loadFiles, 5000);
  </script>
</body>
</html>
""")


def render_page(ip: str | None, port: int) -> str:
    return _PAGE.substitute(
        app_name=APP_NAME,
        ip=html.escape(ip or "unknown"),
        port=port,
    )
