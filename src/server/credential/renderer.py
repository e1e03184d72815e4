"""
文件功能：
    证书文档渲染：根据学生信息生成单页 PDF，并完整写入内存缓冲区。

公开接口：
    - render_certificate(student_id, student_name, course, date) -> bytes

内部方法：
    - _draw_certificate(c, student_id, student_name, course, date) -> None
"""

from __future__ import annotations

from io import BytesIO

from loguru import logger
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from .errors import RenderError

TITLE = "CERTIFICATE OF COMPLETION"


def _draw_certificate(
    c: canvas.Canvas, student_id: str, student_name: str, course: str, date: str
) -> None:
    _, height = letter
    # 标题在左上方，其余各行依次向下排列
    c.setFont("Helvetica-Bold", 25)
    c.drawString(100, height - 100, TITLE)

    c.setFont("Helvetica", 18)
    y = height - 140
    for line in (
        f"Awarded to: {student_name}",
        f"ID: {student_id}",
        f"Course: {course}",
        f"Date: {date}",
    ):
        c.drawString(100, y, line)
        y -= 24
    c.showPage()


def render_certificate(student_id: str, student_name: str, course: str, date: str) -> bytes:
    """
    渲染证书 PDF。
    :return: 完整的 PDF 字节流。
    :raises RenderError: 渲染过程中出错或输出不完整。
    """
    buffer = BytesIO()
    try:
        c = canvas.Canvas(buffer, pagesize=letter)
        c.setTitle(f"{TITLE} - {student_name}")
        c.setSubject(course)
        _draw_certificate(c, student_id, student_name, course, date)
        c.save()
    except Exception as e:
        logger.error(f"渲染证书失败 (studentID={student_id}): {e}")
        raise RenderError(f"证书渲染失败: {e}") from e

    data = buffer.getvalue()
    # 输出必须是完整的 PDF：以文件头开始、以 EOF 标记结束
    if not data.startswith(b"%PDF-") or b"%%EOF" not in data[-32:]:
        logger.error(f"渲染输出不完整 (studentID={student_id}, size={len(data)})")
        raise RenderError("证书渲染输出不完整")
    return data
