"""HTML pages served to students and administrators."""

from __future__ import annotations

from exam_portal.constants.about import APP_NAME
from exam_portal.constants.exam_constants import KEYBOARD_ROWS

_BASE_STYLE = """
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); }
      .hidden { display: none; }
      .primary-button { border: none; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; background: #1f9aa5; color: #fff; cursor: pointer; }
      .primary-button:disabled { opacity: 0.6; cursor: not-allowed; }
      input[type=text], input[type=password] { padding: 0.6rem; border-radius: 0.5rem; border: 1px solid #334155; background: #0b1120; color: #f5f7ff; font-size: 1rem; }
      .error { color: #f87171; }
      .status { color: #4ade80; }
      table { border-collapse: collapse; width: 100%; }
      th, td { border-bottom: 1px solid #334155; padding: 0.4rem; text-align: left; }
"""

_KEYBOARD_HTML = "\n".join(
    '<div class="key-row">'
    + "".join(f'<button class="gesture-key" data-key="{key}">{key}</button>' for key in row)
    + "</div>"
    for row in KEYBOARD_ROWS
) + (
    '<div class="key-row">'
    '<button class="gesture-key wide" data-key="SPACE">SPACE</button>'
    '<button class="gesture-key wide" data-key="BACKSPACE">BACKSPACE</button>'
    '<button class="gesture-key wide" data-key="CLEAR">CLEAR</button>'
    "</div>"
)

STUDENT_PAGE_HTML = f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{APP_NAME}</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>{_BASE_STYLE}
      .question {{ margin-bottom: 1rem; padding: 0.75rem; border-radius: 0.5rem; }}
      .question.active {{ outline: 2px solid #1f9aa5; }}
      .key-row {{ display: flex; gap: 0.35rem; margin-bottom: 0.35rem; justify-content: center; }}
      .gesture-key {{ min-width: 2.5rem; padding: 0.6rem; border-radius: 0.4rem; border: none; background: #e5e7eb; color: #111827; cursor: pointer; }}
      .gesture-key.wide {{ min-width: 7rem; }}
      #timer {{ font-size: 1.25rem; color: #facc15; }}
      #camera {{ position: relative; width: 320px; height: 240px; }}
      #camera video, #camera canvas {{ position: absolute; left: 0; top: 0; width: 320px; height: 240px; transform: scaleX(-1); }}
    </style>
  </head>
  <body>
    <section class="card" id="login-card">
      <h1>Student Login</h1>
      <p><input id="student-name" type="text" placeholder="Name" /></p>
      <p><input id="roll-number" type="text" placeholder="Roll number" /></p>
      <button id="login-button" class="primary-button">Start Exam</button>
      <p id="login-error" class="error"></p>
    </section>
    <section class="card hidden" id="exam-card">
      <div id="timer"></div>
      <div id="questions"></div>
      <button id="prev-button" class="primary-button">Previous</button>
      <button id="next-button" class="primary-button">Next</button>
      <button id="submit-button" class="primary-button">Submit Exam</button>
      <p id="status" class="status"></p>
      <p id="error" class="error"></p>
    </section>
    <section class="card hidden" id="keyboard-card">
      <p id="gesture-info">Gesture keyboard loading...</p>
      <div id="camera"><video id="video" autoplay playsinline muted></video><canvas id="overlay" width="320" height="240"></canvas></div>
      <div id="keyboard">{_KEYBOARD_HTML}</div>
    </section>
    <script>
      let sessionId = null;
      let questionCount = 0;
      let cursor = 0;
      let pollHandle = null;

      const el = id => document.getElementById(id);

      async function api(method, path, body) {{
        const response = await fetch(path, {{
          method,
          headers: {{ 'Content-Type': 'application/json' }},
          body: body === undefined ? undefined : JSON.stringify(body),
        }});
        return response.json().catch(() => ({{}}));
      }}

      function formatTime(sec) {{
        const m = Math.floor(sec / 60).toString().padStart(2, '0');
        const s = (sec % 60).toString().padStart(2, '0');
        return `${{m}}:${{s}}`;
      }}

      function renderQuestions(questions) {{
        const container = el('questions');
        container.innerHTML = '';
        questions.forEach((q, index) => {{
          const wrapper = document.createElement('div');
          wrapper.className = 'question';
          wrapper.id = 'question-' + index;
          const options = Object.entries(q.options || {{}})
            .map(([label, html]) => `<div><strong>${{label}})</strong> ${{html}}</div>`).join('');
          wrapper.innerHTML = `<div>Q${{q.position}}. ${{q.text_html}}</div>${{options}}`;
          const input = document.createElement('input');
          input.type = 'text';
          input.placeholder = 'Your answer';
          input.id = 'answer-' + index;
          input.addEventListener('focus', () => goTo(index));
          input.addEventListener('input', () =>
            api('PUT', `/api/sessions/${{sessionId}}/answers/${{index + 1}}`, {{ value: input.value }}));
          wrapper.appendChild(input);
          container.appendChild(wrapper);
        }});
      }}

      function applySnapshot(snapshot) {{
        el('timer').textContent = 'Time left: ' + formatTime(snapshot.time_remaining || 0);
        el('status').textContent = snapshot.status || '';
        el('error').textContent = snapshot.error || '';
        if (snapshot.gesture_status) el('gesture-info').textContent = snapshot.gesture_status;
        cursor = snapshot.cursor;
        for (let i = 0; i < questionCount; i++) {{
          const box = el('question-' + i);
          box.classList.toggle('active', i === cursor);
          const input = el('answer-' + i);
          const value = (snapshot.answers || {{}})['Q' + (i + 1)] || '';
          if (document.activeElement !== input) input.value = value;
          input.disabled = snapshot.submitted;
        }}
        el('submit-button').disabled = snapshot.submitted;
        if (snapshot.submitted && pollHandle) {{
          clearInterval(pollHandle);
          pollHandle = null;
          stopCamera();
        }}
      }}

      async function refresh() {{
        if (!sessionId) return;
        applySnapshot(await api('GET', `/api/sessions/${{sessionId}}`));
      }}

      async function goTo(index) {{
        await api('POST', `/api/sessions/${{sessionId}}/cursor`, {{ position: index }});
        refresh();
      }}

      async function login() {{
        const name = el('student-name').value.trim();
        const rollNumber = el('roll-number').value.trim();
        if (!name || !rollNumber) {{
          el('login-error').textContent = 'Please enter both fields';
          return;
        }}
        const result = await api('POST', '/api/student-login', {{ name, rollNumber }});
        if (!result.success) {{
          el('login-error').textContent = result.error || 'Login failed. Please check your details.';
          return;
        }}
        const session = await api('POST', '/api/sessions', {{ name, rollNumber }});
        sessionId = session.session_id;
        questionCount = session.questions.length;
        el('login-card').classList.add('hidden');
        el('exam-card').classList.remove('hidden');
        renderQuestions(session.questions);
        applySnapshot(session.state);
        if (session.state.phase === 'in_progress') {{
          el('keyboard-card').classList.remove('hidden');
          pollHandle = setInterval(refresh, 1000);
          startCamera();
        }}
      }}

      async function submitExam() {{
        el('submit-button').disabled = true;
        await api('POST', `/api/sessions/${{sessionId}}/submit`);
        refresh();
      }}

      async function pressKey(label) {{
        if (!sessionId) return;
        await api('POST', `/api/sessions/${{sessionId}}/keys`, {{ label, channel: 'gesture' }});
        refresh();
      }}

      document.querySelectorAll('.gesture-key').forEach(key =>
        key.addEventListener('click', () => pressKey(key.dataset.key)));
      el('login-button').addEventListener('click', login);
      el('submit-button').addEventListener('click', submitExam);
      el('prev-button').addEventListener('click', () => goTo((cursor || 0) - 1));
      el('next-button').addEventListener('click', () => goTo((cursor || 0) + 1));

      // Webcam gesture keyboard. Landmarks come from MediaPipe Hands; the server
      // decides hover, pinch and cooldown.
      let stream = null;
      let hands = null;
      let frameBusy = false;

      const loadScript = src => new Promise((resolve, reject) => {{
        const s = document.createElement('script');
        s.src = src;
        s.onload = () => resolve();
        s.onerror = () => reject(new Error('Failed to load script: ' + src));
        document.body.appendChild(s);
      }});

      async function reportGestureFailure(reason) {{
        el('gesture-info').textContent = 'Gesture keyboard disabled: ' + reason;
        if (sessionId) await api('POST', `/api/sessions/${{sessionId}}/gesture-status`, {{ available: false, reason }});
      }}

      function keyRects() {{
        return Array.from(document.querySelectorAll('.gesture-key')).map(key => {{
          const rect = key.getBoundingClientRect();
          return {{ label: key.dataset.key, left: rect.left, top: rect.top, right: rect.right, bottom: rect.bottom }};
        }});
      }}

      async function onResults(results) {{
        if (!results.multiHandLandmarks || results.multiHandLandmarks.length === 0 || frameBusy) return;
        const landmarks = results.multiHandLandmarks[0];
        const videoRect = el('video').getBoundingClientRect();
        frameBusy = true;
        try {{
          await api('POST', `/api/sessions/${{sessionId}}/gesture-frames`, {{
            index_tip: {{ x: landmarks[8].x, y: landmarks[8].y }},
            thumb_tip: {{ x: landmarks[4].x, y: landmarks[4].y }},
            frame: {{ left: videoRect.left, top: videoRect.top, width: videoRect.width, height: videoRect.height }},
            keys: keyRects(),
            timestamp_ms: Date.now(),
          }});
        }} finally {{
          frameBusy = false;
        }}
      }}

      async function startCamera() {{
        try {{
          el('gesture-info').textContent = 'Starting webcam...';
          stream = await navigator.mediaDevices.getUserMedia({{ video: {{ width: 320, height: 240 }} }});
          el('video').srcObject = stream;
          await loadScript('https://cdn.jsdelivr.net/npm/@mediapipe/hands/hands.js');
          hands = new window.Hands({{ locateFile: f => `https://cdn.jsdelivr.net/npm/@mediapipe/hands/${{f}}` }});
          hands.setOptions({{ maxNumHands: 1, minDetectionConfidence: 0.7, minTrackingConfidence: 0.5 }});
          hands.onResults(onResults);
          el('gesture-info').textContent = 'Point at a key and pinch to type.';
          const loop = async () => {{
            if (!hands) return;
            await hands.send({{ image: el('video') }});
            requestAnimationFrame(loop);
          }};
          loop();
        }} catch (err) {{
          reportGestureFailure(err.message || String(err));
        }}
      }}

      function stopCamera() {{
        if (hands && hands.close) hands.close();
        hands = null;
        if (stream) stream.getTracks().forEach(t => t.stop());
        stream = null;
      }}

      window.addEventListener('beforeunload', () => {{
        if (sessionId) fetch(`/api/sessions/${{sessionId}}`, {{ method: 'DELETE', keepalive: true }});
      }});
    </script>
  </body>
</html>
"""

ADMIN_PAGE_HTML = f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{APP_NAME} Admin</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>{_BASE_STYLE}</style>
  </head>
  <body>
    <section class="card" id="login-card">
      <h1>Admin Login</h1>
      <p><input id="username" type="text" placeholder="Username" /></p>
      <p><input id="password" type="password" placeholder="Password" /></p>
      <button id="login-button" class="primary-button">Log in</button>
      <p id="login-error" class="error"></p>
    </section>
    <section class="card hidden" id="upload-card">
      <h2>Question Bank</h2>
      <p id="questions-status"></p>
      <input id="file" type="file" accept="application/json" />
      <button id="upload-button" class="primary-button">Upload Questions</button>
      <p id="upload-status" class="status"></p>
      <ul id="upload-errors" class="error"></ul>
    </section>
    <section class="card hidden" id="results-card">
      <h2>Results</h2>
      <button id="refresh-button" class="primary-button">Refresh</button>
      <p id="results-error" class="error"></p>
      <table>
        <thead><tr><th>Name</th><th>Roll number</th><th>Score</th><th>Submitted at</th></tr></thead>
        <tbody id="results-body"></tbody>
      </table>
    </section>
    <script>
      const el = id => document.getElementById(id);

      async function verifyQuestions() {{
        try {{
          const data = await (await fetch('/api/questions')).json();
          el('questions-status').textContent = Array.isArray(data) && data.length
            ? `${{data.length}} questions available.`
            : 'No questions found in database.';
        }} catch (err) {{
          el('questions-status').textContent = 'Error verifying questions.';
        }}
      }}

      async function fetchResults() {{
        el('results-error').textContent = '';
        try {{
          const rows = await (await fetch('/api/results')).json();
          el('results-body').innerHTML = '';
          rows.forEach(row => {{
            const tr = document.createElement('tr');
            [row.name, row.rollNumber, row.score, row.submittedAt].forEach(value => {{
              const td = document.createElement('td');
              td.textContent = value ?? '';
              tr.appendChild(td);
            }});
            el('results-body').appendChild(tr);
          }});
        }} catch (err) {{
          el('results-error').textContent = 'Error fetching results from server.';
        }}
      }}

      async function upload() {{
        el('upload-status').textContent = '';
        el('upload-errors').innerHTML = '';
        const file = el('file').files[0];
        if (!file) {{
          el('upload-status').textContent = 'Please select a questions JSON file first.';
          return;
        }}
        const form = new FormData();
        form.append('file', file);
        const result = await (await fetch('/api/upload-questions', {{ method: 'POST', body: form }})).json();
        if (result.success) {{
          el('upload-status').textContent = `Uploaded ${{result.count}} questions.`;
          verifyQuestions();
        }} else {{
          el('upload-status').textContent = result.error || 'Upload failed. Server rejected the file.';
          (result.errors || []).forEach(message => {{
            const li = document.createElement('li');
            li.textContent = message;
            el('upload-errors').appendChild(li);
          }});
        }}
      }}

      async function login() {{
        const response = await fetch('/api/admin-login', {{
          method: 'POST',
          headers: {{ 'Content-Type': 'application/json' }},
          body: JSON.stringify({{ username: el('username').value, password: el('password').value }}),
        }});
        const result = await response.json();
        if (!result.success) {{
          el('login-error').textContent = result.error || 'Login failed.';
          return;
        }}
        el('login-card').classList.add('hidden');
        el('upload-card').classList.remove('hidden');
        el('results-card').classList.remove('hidden');
        verifyQuestions();
        fetchResults();
      }}

      el('login-button').addEventListener('click', login);
      el('upload-button').addEventListener('click', upload);
      el('refresh-button').addEventListener('click', fetchResults);
    </script>
  </body>
</html>
"""
