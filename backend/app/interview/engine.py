import logging

from app.errors import SessionClosedError, SessionNotFoundError, UpstreamUnavailableError
from app.interview.evaluator import evaluate_answer
from app.interview.questions import generate_questions
from app.interview.scorer import summarize_results
from app.interview.state import InterviewRun
from app.system_metrics import increment_metric, set_metric
from core.logger import log_event

logger = logging.getLogger("app.interview.engine")


class AIInterviewEngine:
    """Drives practice runs: create session, serve questions, evaluate answers, complete."""

    def __init__(self, sessions, llm, registry, duration_sec: int = 1800, question_count: int = 5):
        self.sessions = sessions
        self.llm = llm
        self.registry = registry
        self.duration_sec = duration_sec
        self.question_count = question_count

    def _now(self):
        return self.sessions.clock()

    def _refresh_metrics(self) -> None:
        set_metric("runs_active", float(self.registry.active_count()))

    def get_run(self, session_id: str) -> InterviewRun:
        run = self.registry.get_run(session_id)
        if run is None:
            raise SessionNotFoundError(f"No live interview for session {session_id}")
        return run

    def start(self, user_email: str, role: str, round_type: str, difficulty: str) -> dict:
        session = self.sessions.create_session(user_email, role, round_type, difficulty)
        run = InterviewRun(session.id, user_email, session.role, session.round_type, session.difficulty)

        questions = generate_questions(self.llm, run.role, run.round_type, run.difficulty, self.question_count)
        run.begin(questions, self._now(), self.duration_sec)
        self.registry.register(session.id, run)
        self._refresh_metrics()

        log_event("engine", "run_started", session.id, total=run.total, duration_sec=self.duration_sec)
        return run.snapshot(self._now())

    def submit_answer(self, session_id: str, answer: str) -> dict:
        run = self.get_run(session_id)

        with run.lock:
            if run.completed:
                raise SessionClosedError(f"Session {session_id} is already completed")

            if run.is_expired(self._now()):
                results = self._complete(run, "expired")
                return {"done": True, "expired": True, "evaluation": None, "results": results}

            current = run.current_question or {}
            question = str(current.get("question") or "")
            evaluation = evaluate_answer(
                self.llm,
                question,
                answer,
                run.role,
                run.round_type,
                run.difficulty,
                expected_points=list(current.get("expectedPoints") or []),
            )
            self.sessions.save_qa(
                session_id,
                question,
                answer,
                evaluation["score"],
                evaluation["feedback"],
            )
            self.registry.touch(session_id)

            if not run.advance():
                results = self._complete(run, "all_answered")
                return {"done": True, "expired": False, "evaluation": evaluation, "results": results}

            return {
                "done": False,
                "evaluation": evaluation,
                "next_question": run.current_question,
                "index": run.index,
                "total": run.total,
                "remaining_sec": run.remaining_seconds(self._now()),
            }

    def finish(self, session_id: str) -> dict:
        run = self.get_run(session_id)
        with run.lock:
            if run.completed:
                return self.results(session_id)
            return self._complete(run, "finished_early")

    def expire_due(self) -> int:
        """Complete every live run whose countdown reached zero."""
        now = self._now()
        expired = 0
        for run in self.registry.active_runs():
            if run.completed or not run.is_expired(now):
                continue
            with run.lock:
                if run.completed:
                    continue
                try:
                    self._complete(run, "expired")
                except UpstreamUnavailableError as exc:
                    logger.warning("expire_due failed | session_id=%s err=%s", run.session_id, exc)
                    continue
                expired += 1
        return expired

    def snapshot(self, session_id: str) -> dict:
        run = self.get_run(session_id)
        now = self._now()
        if not run.completed and run.is_expired(now):
            with run.lock:
                if not run.completed:
                    self._complete(run, "expired")
        return run.snapshot(now)

    def results(self, session_id: str) -> dict:
        session = self.sessions.get_session(session_id)
        qas = self.sessions.list_qas(session_id)
        summary = summarize_results(qas)
        summary.update(
            {
                "session": session.to_dict(),
                "score": session.score if session.score is not None else summary["score"],
                "completed": session.is_closed,
            }
        )
        return summary

    def _complete(self, run: InterviewRun, reason: str) -> dict:
        # persisted first; a failed write leaves the run in progress
        if not run.completed:
            self.sessions.complete_session(run.session_id)
            if run.try_complete(reason):
                self.registry.mark_inactive(run.session_id)
                self._refresh_metrics()
                if reason == "expired":
                    increment_metric("sessions_expired")
                log_event("engine", "run_completed", run.session_id, reason=reason, answered=run.index)
        return self.results(run.session_id)
