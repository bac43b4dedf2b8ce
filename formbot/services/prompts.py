"""Instruction text sent to Gemini with every document.

The default prompt defines the response contract (a JSON object with
isForm, formType, sensitiveInfo, confidence, pageCount and notes). A custom
prompt file replaces it verbatim.
"""

from pathlib import Path
from typing import Union


FORM_ANALYSIS_PROMPT = """Analyze this PDF document and answer the following questions. Be thorough in your analysis.

**Question 1: Is this a form?**
A form is a document whose PRIMARY PURPOSE is to collect information from a person who fills it out.

CLASSIFY AS A FORM (Yes):
- Documents with input fields, text boxes, or blank lines for writing responses
- Documents with checkboxes or radio buttons for the user to select
- Documents with signature lines
- Documents with instructions to "fill in", "complete", or "submit"
- Documents with labeled fields like "Name:", "Address:", "Date:", etc.

DO NOT CLASSIFY AS A FORM (No):
- Checklists or compliance guides (even if they have checkboxes for internal tracking)
- Reports, handbooks, or manuals that happen to contain sample templates
- Documents where less than 50% of the content is form fields
- Informational brochures or reference materials
- Budget documents, meeting minutes, or policy documents

Answer: "Yes" or "No"

**Question 2: If it IS a form, what type of form is it?**
Choose the MOST appropriate type:
- "Fillable PDF" - A PDF with INTERACTIVE FORM FIELDS that can be typed into directly in a PDF reader (look for blue-highlighted fields, text input boxes, or AcroForm elements)
- "Non-Fillable PDF" - A printable PDF form that MUST BE FILLED BY HAND on a printout (has blank lines/boxes but no interactive digital fields)
- "N/A" - Not a form

**Question 3: Does this form ask for any sensitive information?**
Only mark TRUE if the form explicitly asks the USER to provide their own personal sensitive information (not just references to policies or other people's information):

- SSN (Social Security Number): The form asks the user to write their own Social Security Number. Look for "SSN", "Social Security Number", or 9-digit number fields (XXX-XX-XXXX format).
- Driver's License Number: The form asks for the user's own driver's license or state ID number. Look for "Driver's License", "DL#", "License Number", or state ID fields. (Note: Business license numbers do NOT count)
- Financial Information: The form asks for personal financial details like bank account numbers, routing numbers, income amounts, salary, tax information, or credit card numbers.
- Health/Medical Information: The form asks for personal medical history, diagnoses, medications, doctor information, disabilities, or insurance claims.
- Criminal History: The form asks about personal arrests, convictions, or criminal background.

**Question 4: Confidence Level**
Rate your confidence in this assessment from 0.0 to 1.0:
- 0.9-1.0: Very confident - document is clearly a form or clearly not a form
- 0.7-0.8: Confident - some ambiguity but classification is likely correct
- 0.5-0.6: Uncertain - edge case that could go either way
- Below 0.5: Low confidence - document is unusual or hard to classify

**Question 5: Document Metadata**
Count the number of pages in this PDF document.

**Respond in this exact JSON format:**
```json
{
  "isForm": "Yes" or "No",
  "formType": "<one of the types listed above>",
  "sensitiveInfo": {
    "ssn": true/false,
    "driversLicense": true/false,
    "financial": true/false,
    "health": true/false,
    "criminalHistory": true/false
  },
  "confidence": <0.0 to 1.0>,
  "pageCount": <number of pages>,
  "notes": "<brief description of what the document is and any relevant observations>"
}
```"""


def load_prompt(path: Union[str, Path]) -> str:
    """Read a custom prompt file.

    Raises:
        FileNotFoundError: If the prompt file does not exist.
        ValueError: If the prompt file is empty.
    """
    prompt_path = Path(path)
    if not prompt_path.is_file():
        raise FileNotFoundError(f"Prompt file not found: {prompt_path.resolve()}")
    text = prompt_path.read_text(encoding="utf-8")
    if not text.strip():
        raise ValueError(f"Prompt file is empty: {prompt_path.resolve()}")
    return text
