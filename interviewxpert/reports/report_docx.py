from docx import Document


def generate_report_docx(report: dict, file_path: str):
    doc = Document()

    # Title
    doc.add_heading("Assessment Session Report", level=1)

    # Summary
    doc.add_heading("Summary", level=2)
    for line in report["summary"]:
        doc.add_paragraph(line)

    # Scores
    doc.add_heading("Overall Score", level=2)
    scores = report["scores"]
    doc.add_paragraph(f"Score: {scores['overall_score']}%")
    doc.add_paragraph(f"Grade: {scores['grade']}")

    gamification = report.get("gamification", {})
    doc.add_paragraph(f"XP earned: {gamification.get('xp', 0)}  |  Streak: {gamification.get('streak', 0)}")

    if scores["domain_scores"]:
        doc.add_heading("Domain Scores", level=2)
        table = doc.add_table(rows=1, cols=2)
        header = table.rows[0].cells
        header[0].text = "Domain"
        header[1].text = "Score (%)"
        for domain, score in scores["domain_scores"].items():
            cells = table.add_row().cells
            cells[0].text = domain
            cells[1].text = f"{score}"

    if scores["rubric_averages"]:
        doc.add_heading("Rubric Averages", level=2)
        for dim, value in scores["rubric_averages"].items():
            doc.add_paragraph(f"{dim.replace('_', ' ').title()}: {value:.2f}", style="List Bullet")

    # Strengths / weaknesses
    doc.add_heading("Strengths", level=2)
    for s in report["strengths"]:
        doc.add_paragraph(s, style="List Bullet")

    doc.add_heading("Areas to Improve", level=2)
    for w in report["weaknesses"]:
        doc.add_paragraph(w, style="List Bullet")

    # Suggestions
    doc.add_heading("Suggestions", level=2)
    for s in report["suggestions"]:
        doc.add_paragraph(s, style="List Number")

    doc.save(file_path)
