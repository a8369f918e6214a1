"""FastAPI server that lets a browser take a quiz through the attempt engine."""

from __future__ import annotations

from threading import Lock, Thread
from typing import Callable, Iterator
from contextlib import contextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import uvicorn

from quiz_taker.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, SESSION_COOKIE_NAME
from quiz_taker.core.errors import ConfirmationRequired, InvalidTransition
from quiz_taker.core.markdown_math_renderer import renderer
from quiz_taker.core.models import AttemptSnapshot, AttemptState, EligibilityDecision, Question, QuizResult
from quiz_taker.core.quiz_session import QuizSession

SessionFactory = Callable[[], QuizSession]


class SessionRegistry:
    """Maps browser session ids to their quiz session."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._lock = Lock()
        self._session_factory = session_factory
        self._sessions: dict[str, QuizSession] = {}

    def get(self, session_id: str | None) -> QuizSession | None:
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def get_or_create(self, session_id: str | None) -> tuple[str, QuizSession]:
        with self._lock:
            if session_id and session_id in self._sessions:
                return session_id, self._sessions[session_id]
            new_id = uuid4().hex
            session = self._session_factory()
            self._sessions[new_id] = session
            return new_id, session

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class StartPayload(BaseModel):
    """Payload schema for starting an attempt."""

    package_id: int
    student_key: str
    course_id: int | None = None
    student_name: str | None = None


class AnswerPayload(BaseModel):
    """Payload schema for a single answer."""

    question_id: int
    answer: str


class GoToPayload(BaseModel):
    index: int


class SubmitPayload(BaseModel):
    confirmed: bool = False


def _serialize_question(question: Question, index: int) -> dict[str, object]:
    return {
        "id": question.id,
        "index": index,
        "question_html": renderer.render_fragment(question.question_text),
        "question_type": question.question_type.value,
        "options": list(question.options),
        "options_html": [renderer.render_inline(option) for option in question.options],
        "points": question.points,
    }


def _serialize_result(result: QuizResult) -> dict[str, object]:
    return {
        "score": result.score,
        "total_points": result.total_points,
        "percentage": result.percentage,
        "correct": result.correct,
        "incorrect": result.incorrect,
        "elapsed_seconds": result.elapsed_seconds,
        "details": [
            {
                "question_id": detail.question_id,
                "submitted_answer": detail.submitted_answer,
                "correct_answer": detail.correct_answer,
                "is_correct": detail.is_correct,
                "points_earned": detail.points_earned,
                "max_points": detail.max_points,
            }
            for detail in result.details
        ],
    }


def _serialize_eligibility(decision: EligibilityDecision) -> dict[str, object]:
    previous = decision.previous_attempt
    return {
        "approved": decision.approved,
        "reason": decision.reason,
        "prior_attempts": decision.prior_attempts,
        "max_retakes": decision.max_retakes,
        "previous_attempt": None
        if previous is None
        else {
            "score": previous.score,
            "total_points": previous.total_points,
            "percentage": previous.percentage,
            "time_taken_seconds": previous.time_taken_seconds,
            "total_questions": previous.total_questions,
            "completed_at": previous.completed_at.isoformat() if previous.completed_at else None,
        },
    }


def serialize_snapshot(snapshot: AttemptSnapshot) -> dict[str, object]:
    """Turn a snapshot into JSON; correct answers only appear in the result."""
    question = None
    if snapshot.current_question is not None and snapshot.state is AttemptState.IN_PROGRESS:
        question = _serialize_question(snapshot.current_question, snapshot.current_index)
    return {
        "state": snapshot.state.value,
        "package_title": snapshot.package_title,
        "course_title": snapshot.course_title,
        "current_index": snapshot.current_index,
        "question_count": snapshot.question_count,
        "question": question,
        "answers": {str(question_id): text for question_id, text in snapshot.answers.items()},
        "remaining_seconds": snapshot.remaining_seconds,
        "duration_seconds": snapshot.duration_seconds,
        "warning": snapshot.warning,
        "result": _serialize_result(snapshot.result) if snapshot.result else None,
        "eligibility": _serialize_eligibility(snapshot.eligibility) if snapshot.eligibility else None,
        "error_reason": snapshot.error_reason,
    }


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except ConfirmationRequired as exc:
        raise HTTPException(status_code=428, detail=str(exc)) from exc
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _get_registry_dependency(registry: SessionRegistry):
    def dependency() -> SessionRegistry:
        return registry

    return dependency


def _ensure_session(request: Request, response: Response, registry: SessionRegistry) -> QuizSession:
    cookie_value = request.cookies.get(SESSION_COOKIE_NAME)
    session_id, session = registry.get_or_create(cookie_value)
    if session_id != cookie_value:
        response.set_cookie(
            key=SESSION_COOKIE_NAME,
            value=session_id,
            max_age=60 * 60 * 12,
            samesite="lax",
            httponly=True,
        )
    return session


def _existing_session(request: Request, registry: SessionRegistry) -> QuizSession:
    session = registry.get(request.cookies.get(SESSION_COOKIE_NAME))
    if session is None or session.current is None:
        raise HTTPException(status_code=404, detail="No quiz attempt in this session.")
    return session


def create_api_app(registry: SessionRegistry) -> FastAPI:
    """Create a FastAPI application wired to the provided session registry."""
    app = FastAPI(title="QuizTaker", version="0.1.0")
    registry_dep = _get_registry_dependency(registry)

    @app.get("/", response_class=HTMLResponse)
    def serve_quiz_page() -> str:
        return _QUIZ_PAGE_HTML

    @app.get("/attempt")
    def get_attempt(
        request: Request,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        session = _existing_session(request, sessions)
        return serialize_snapshot(session.require_current().snapshot())

    @app.post("/attempt", status_code=201)
    def start_attempt(
        payload: StartPayload,
        request: Request,
        response: Response,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        session = _ensure_session(request, response, sessions)
        with _translate_errors():
            snapshot = session.begin(
                payload.course_id,
                payload.package_id,
                payload.student_key,
                payload.student_name,
            )
        return serialize_snapshot(snapshot)

    @app.post("/attempt/answer")
    def answer_question(
        payload: AnswerPayload,
        request: Request,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        attempt = _existing_session(request, sessions).require_current()
        with _translate_errors():
            return serialize_snapshot(attempt.answer(payload.question_id, payload.answer))

    @app.post("/attempt/next")
    def next_question(
        request: Request,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        attempt = _existing_session(request, sessions).require_current()
        with _translate_errors():
            return serialize_snapshot(attempt.next())

    @app.post("/attempt/previous")
    def previous_question(
        request: Request,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        attempt = _existing_session(request, sessions).require_current()
        with _translate_errors():
            return serialize_snapshot(attempt.previous())

    @app.post("/attempt/goto")
    def go_to_question(
        payload: GoToPayload,
        request: Request,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        attempt = _existing_session(request, sessions).require_current()
        with _translate_errors():
            return serialize_snapshot(attempt.go_to(payload.index))

    @app.post("/attempt/submit")
    def submit_attempt(
        payload: SubmitPayload,
        request: Request,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        attempt = _existing_session(request, sessions).require_current()
        with _translate_errors():
            return serialize_snapshot(attempt.submit(confirmed=payload.confirmed))

    return app


def start_api_server(
    registry: SessionRegistry,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(registry)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizPageServer", daemon=True)
    thread.start()
    return thread


_QUIZ_PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>QuizTaker</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); }
      .hidden { display: none; }
      .primary-button { border: none; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; background: #1f9aa5; color: #fff; cursor: pointer; }
      .primary-button:disabled { opacity: 0.6; cursor: not-allowed; }
      input[type=text], input[type=number] { padding: 0.6rem; border-radius: 0.5rem; border: 1px solid #334155; background: #0b1120; color: #f5f7ff; }
      .options { display: flex; flex-direction: column; gap: 0.5rem; margin: 1rem 0; }
      .nav-row { display: flex; gap: 0.75rem; flex-wrap: wrap; }
      #timer-label { font-size: 1.1rem; color: #facc15; }
      #timer-label.urgent { color: #ef4444; }
      #warning, #message { min-height: 1.25rem; color: #94a3b8; }
      .correct { color: #4ade80; }
      .incorrect { color: #f87171; }
    </style>
    <script>
      window.MathJax = { tex: { inlineMath: [['$','$']], displayMath: [['$$','$$']] }, svg: { fontCache: 'global' } };
    </script>
    <script defer src="https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"></script>
  </head>
  <body>
    <section class="card" id="start-card">
      <h1>Start Quiz</h1>
      <p><input id="student-name" type="text" placeholder="Your name" /></p>
      <p><input id="package-id" type="number" min="1" placeholder="Quiz package ID" /></p>
      <button id="start-button" class="primary-button">Start Quiz</button>
      <p id="message"></p>
    </section>
    <section class="card hidden" id="quiz-card">
      <h2 id="quiz-title"></h2>
      <span id="timer-label"></span>
      <p id="progress"></p>
      <div id="question-container"></div>
      <div id="options-container" class="options"></div>
      <p id="warning"></p>
      <div class="nav-row">
        <button id="prev-button" class="primary-button">Previous</button>
        <button id="next-button" class="primary-button">Next</button>
        <button id="submit-button" class="primary-button">Submit Quiz</button>
      </div>
    </section>
    <section class="card hidden" id="result-card">
      <h2 id="result-title"></h2>
      <div id="result-body"></div>
    </section>
    <script>
      const startCard = document.getElementById('start-card');
      const quizCard = document.getElementById('quiz-card');
      const resultCard = document.getElementById('result-card');
      const messageEl = document.getElementById('message');
      const timerLabel = document.getElementById('timer-label');
      const optionsContainer = document.getElementById('options-container');
      let pollHandle = null;
      let typingHandle = null;
      let shownQuestionId = null;

      async function deviceKey() {
        const stored = window.localStorage.getItem('quizTakerDeviceKey');
        if (stored) { return stored; }
        const parts = [screen.width, screen.height, screen.colorDepth,
          Intl.DateTimeFormat().resolvedOptions().timeZone, navigator.language,
          navigator.platform, navigator.hardwareConcurrency || 'unknown', navigator.userAgent];
        const digest = await crypto.subtle.digest('SHA-256', new TextEncoder().encode(parts.join('|')));
        const key = Array.from(new Uint8Array(digest)).map(b => b.toString(16).padStart(2, '0')).join('');
        window.localStorage.setItem('quizTakerDeviceKey', key);
        return key;
      }

      async function call(path, body) {
        const response = await fetch(path, {
          method: body === undefined ? 'GET' : 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body),
        });
        const data = await response.json();
        if (!response.ok) { throw new Error(data.detail || 'Request failed'); }
        return data;
      }

      function formatTime(seconds) {
        const mins = Math.floor(seconds / 60);
        const secs = seconds % 60;
        return `${mins}:${secs.toString().padStart(2, '0')}`;
      }

      function renderOptions(question, answers) {
        if (question.id === shownQuestionId && optionsContainer.contains(document.activeElement)) {
          return;
        }
        shownQuestionId = question.id;
        optionsContainer.innerHTML = '';
        const current = answers[String(question.id)] || '';
        const choices = question.question_type === 'true_false' ? ['True', 'False'] : question.options;
        if (question.question_type === 'short_answer') {
          const input = document.createElement('input');
          input.type = 'text';
          input.value = current;
          input.addEventListener('input', () => {
            clearTimeout(typingHandle);
            typingHandle = setTimeout(() => answer(question.id, input.value), 300);
          });
          input.addEventListener('change', () => {
            clearTimeout(typingHandle);
            answer(question.id, input.value);
          });
          optionsContainer.appendChild(input);
          return;
        }
        choices.forEach((choice, position) => {
          const label = document.createElement('label');
          const radio = document.createElement('input');
          radio.type = 'radio';
          radio.name = 'choice';
          radio.checked = current.trim().toLowerCase() === choice.trim().toLowerCase();
          radio.addEventListener('change', () => answer(question.id, choice));
          label.appendChild(radio);
          const text = document.createElement('span');
          text.innerHTML = ' ' + (question.options_html[position] || choice);
          label.appendChild(text);
          optionsContainer.appendChild(label);
        });
      }

      function render(snapshot) {
        startCard.classList.toggle('hidden', snapshot.state !== 'idle' && snapshot.state !== 'loading');
        quizCard.classList.toggle('hidden', snapshot.state !== 'in_progress');
        resultCard.classList.toggle('hidden', !['completed', 'blocked', 'error'].includes(snapshot.state));
        if (snapshot.state === 'in_progress') {
          document.getElementById('quiz-title').textContent = snapshot.package_title || '';
          timerLabel.textContent = formatTime(snapshot.remaining_seconds);
          timerLabel.classList.toggle('urgent', snapshot.remaining_seconds <= 60);
          document.getElementById('progress').textContent =
            `Question ${snapshot.current_index + 1} of ${snapshot.question_count}`;
          document.getElementById('question-container').innerHTML = snapshot.question.question_html;
          document.getElementById('warning').textContent = snapshot.warning || '';
          renderOptions(snapshot.question, snapshot.answers);
          if (window.MathJax && window.MathJax.typesetPromise) { window.MathJax.typesetPromise(); }
        } else {
          shownQuestionId = null;
          stopPolling();
        }
        if (snapshot.state === 'completed' || (snapshot.state === 'error' && snapshot.result)) {
          const r = snapshot.result;
          document.getElementById('result-title').textContent = `Score: ${r.score} / ${r.total_points} (${r.percentage}%)`;
          const rows = r.details.map((d, i) =>
            `<li class="${d.is_correct ? 'correct' : 'incorrect'}">Q${i + 1}: ${d.submitted_answer || '(no answer)'}` +
            ` - correct: ${d.correct_answer} (${d.points_earned}/${d.max_points})</li>`).join('');
          const note = snapshot.error_reason ? `<p class="incorrect">${snapshot.error_reason}</p>` : '';
          document.getElementById('result-body').innerHTML =
            `${note}<p>Correct: ${r.correct}, incorrect: ${r.incorrect}, time: ${formatTime(r.elapsed_seconds)}</p><ol>${rows}</ol>`;
        } else if (snapshot.state === 'blocked') {
          const e = snapshot.eligibility;
          const prev = e.previous_attempt;
          document.getElementById('result-title').textContent = 'Not eligible';
          document.getElementById('result-body').innerHTML = `<p>${e.reason}</p>` +
            (prev ? `<p>Previous score: ${prev.score} / ${prev.total_points}</p>` : '');
        } else if (snapshot.state === 'error') {
          document.getElementById('result-title').textContent = 'Something went wrong';
          document.getElementById('result-body').textContent = snapshot.error_reason || '';
        }
      }

      async function answer(questionId, text) {
        render(await call('/attempt/answer', { question_id: questionId, answer: text }));
      }

      function startPolling() {
        stopPolling();
        pollHandle = setInterval(async () => render(await call('/attempt')), 1000);
      }

      function stopPolling() {
        if (pollHandle) { clearInterval(pollHandle); pollHandle = null; }
      }

      document.getElementById('start-button').addEventListener('click', async () => {
        const name = document.getElementById('student-name').value.trim();
        const packageId = parseInt(document.getElementById('package-id').value, 10);
        if (!name) { messageEl.textContent = 'Please enter your name'; return; }
        if (!packageId) { messageEl.textContent = 'Please enter the quiz package ID'; return; }
        try {
          const snapshot = await call('/attempt', { package_id: packageId, student_key: await deviceKey(), student_name: name });
          render(snapshot);
          if (snapshot.state === 'in_progress') { startPolling(); }
        } catch (error) {
          messageEl.textContent = error.message;
        }
      });
      document.getElementById('prev-button').addEventListener('click', async () => render(await call('/attempt/previous', {})));
      document.getElementById('next-button').addEventListener('click', async () => render(await call('/attempt/next', {})));
      document.getElementById('submit-button').addEventListener('click', async () => {
        if (!confirm('Are you sure you want to submit your quiz? You cannot change your answers after submission.')) { return; }
        render(await call('/attempt/submit', { confirmed: true }));
      });

      const packageParam = new URLSearchParams(window.location.search).get('package');
      if (packageParam) { document.getElementById('package-id').value = packageParam; }
    </script>
  </body>
</html>
"""
