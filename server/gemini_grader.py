"""Gemini grading implementation."""

import json
import logging
import time
import google.generativeai as genai

from core.config import GEMINI_MODEL
from core.errors import GraderUnavailable
from core.interfaces import Grader

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class GeminiGrader(Grader):
    """Grades spelling and meaning answers with Gemini."""

    def __init__(self, api_key: str, model_name: str = GEMINI_MODEL):
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name,
            generation_config={'response_mime_type': 'application/json'}
        )
        self.model_name = model_name

    def _execute(self, prompt: str) -> tuple[str, int]:
        start_time = time.time()
        response = self.model.generate_content(prompt)
        end_time = time.time()
        ms = int((end_time - start_time) * 1000)
        return (response.text, ms)

    def _sanitize_verdict(self, text: str) -> str:
        s = text.replace('```json', '').replace('```', '')
        return s[s.find('{'):s.rfind('}')+1]

    def grade(self, target_word: str, target_meaning: str,
              user_spelling: str, user_meaning: str) -> dict:
        prompt = f"""
            당신은 중학생의 영어 단어 테스트를 채점하는 친절한 AI 선생님입니다.

            [채점 기준]
            1. 영어 스펠링: 대소문자 구분 없이 글자가 정확히 일치해야 합니다. (완벽 일치 필수)
            2. 의미(뜻): 입력된 뜻이 원래의 뜻과 유의어이거나 문맥상 같은 의미라면 정답으로 처리합니다.
               - 예: 원래 뜻이 '뛰다'인데 학생이 '달리다'라고 적으면 정답입니다.
               - 예: 원래 뜻과 전혀 상관없는 뜻이면 오답입니다.
            3. 스펠링과 의미가 모두 맞아야 정답입니다. 부분 점수는 없습니다.

            [대상 데이터]
            - 목표 단어: "{target_word}"
            - 목표 의미: "{target_meaning}"
            - 학생이 쓴 스펠링: "{user_spelling}"
            - 학생이 쓴 의미: "{user_meaning}"

            다음 JSON 형식으로만 답변하세요:
            {{"isCorrect": true 또는 false, "feedback": "정답 여부에 따른 짧고 격려 섞인 한국어 피드백"}}
        """
        try:
            response, ms = self._execute(prompt)
        except Exception as e:
            logger.error(f"Grading request failed: {e}")
            raise GraderUnavailable(str(e)) from e

        sanitized = self._sanitize_verdict(response)
        try:
            verdict = json.loads(sanitized)
        except ValueError as e:
            logger.error(f"Failed to parse verdict: {e}")
            logger.error(f"Raw response:\n{response}")
            if '{' not in response:
                logger.error("Diagnosis: No opening brace '{' found in response")
            elif '}' not in response:
                logger.error("Diagnosis: No closing brace '}' found in response")
            else:
                logger.error("Diagnosis: Unknown parsing issue - possibly malformed JSON")
            raise GraderUnavailable("Unparseable grader response") from e

        if not isinstance(verdict, dict):
            logger.error(f"Verdict is not an object: {type(verdict)}")
            raise GraderUnavailable("Grader response is not an object")

        missing_keys = [k for k in ('isCorrect', 'feedback') if k not in verdict]
        if missing_keys:
            logger.warning(f"AI response missing keys: {missing_keys}")
            logger.warning(f"Raw response:\n{response}")
            raise GraderUnavailable(f"Grader response missing {missing_keys}")

        if not isinstance(verdict['isCorrect'], bool):
            logger.warning(f"Invalid isCorrect type: {type(verdict['isCorrect'])} = {verdict['isCorrect']}")
            raise GraderUnavailable("Grader returned a non-boolean verdict")

        logger.info(f"Graded '{target_word}' in {ms}ms: {verdict['isCorrect']}")
        return {'isCorrect': verdict['isCorrect'], 'feedback': str(verdict['feedback'])}
