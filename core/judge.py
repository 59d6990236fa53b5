"""Local grading used when the remote grader cannot answer."""


def judge(target_word: str, target_meaning: str, user_spelling: str, user_meaning: str) -> dict:
    """Exact-match grading: spelling ignores case, meaning must match as written."""
    spelling_match = target_word.strip().lower() == user_spelling.strip().lower()
    meaning_match = target_meaning.strip() == user_meaning.strip()
    is_correct = spelling_match and meaning_match
    if is_correct:
        feedback = "완벽합니다!"
    else:
        feedback = f"아쉬워요. 정답은 {target_word}: {target_meaning} 입니다."
    return {'isCorrect': is_correct, 'feedback': feedback}
