GRADE_BOUNDARIES = (
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "C-"),
)


def percentage(obtained_marks: float, max_marks: float) -> float:
    if not max_marks:
        return 0.0
    return round(obtained_marks / max_marks * 100, 2)


def letter_grade(pct: float) -> str:
    for boundary, letter in GRADE_BOUNDARIES:
        if pct >= boundary:
            return letter
    return "F"
