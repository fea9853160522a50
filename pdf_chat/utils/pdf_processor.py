import fitz  # PyMuPDF
from loguru import logger
from tqdm import tqdm


class ExtractionError(Exception):
    """No text could be recovered from the uploaded file."""
    pass


def extract_text(file_bytes, show_progress=False):
    """
    Extract the text of a PDF.

    Args:
        file_bytes (bytes): Raw PDF content
        show_progress (bool): Display a tqdm progress bar over pages

    Returns:
        str: Page texts joined by blank lines

    Raises:
        ExtractionError: If the file cannot be opened or holds no text
    """
    text, _ = extract_pages(file_bytes, show_progress=show_progress)
    return text


def extract_pages(file_bytes, show_progress=False):
    """Extract the text of a PDF and return it with the page count."""
    if not file_bytes:
        raise ExtractionError("Failed to extract text from PDF: file is empty")

    try:
        doc = fitz.open(stream=file_bytes, filetype="pdf")
    except Exception as e:
        logger.error(f"Error opening PDF: {e}")
        raise ExtractionError("Failed to extract text from PDF") from e

    try:
        page_texts = []
        for page in tqdm(doc, desc="Extracting text", disable=not show_progress):
            page_texts.append(page.get_text().strip())
        page_count = len(doc)
    except Exception as e:
        logger.error(f"Error reading PDF pages: {e}")
        raise ExtractionError("Failed to extract text from PDF") from e
    finally:
        doc.close()

    full_text = "\n\n".join(page_texts).strip()
    if not full_text:
        raise ExtractionError("Failed to extract text from PDF: no readable text found")

    logger.debug(f"Extracted {len(full_text)} characters from {page_count} pages")
    return full_text, page_count
