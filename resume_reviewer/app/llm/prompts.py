FEEDBACK_RESPONSE_FORMAT = """{
  "overallScore": number, // max 100
  "ATS": {
    "score": number, // rate based on ATS suitability, max 100
    "tips": [
      {
        "type": "good" | "improve",
        "tip": string // give 3-4 tips
      }
    ]
  },
  "toneAndStyle": {
    "score": number, // max 100
    "tips": [
      {
        "type": "good" | "improve",
        "tip": string, // make it a short "title" for the actual explanation
        "explanation": string // explain in detail here
      }
    ] // give 3-4 tips
  },
  "content": {
    "score": number, // max 100
    "tips": [
      {
        "type": "good" | "improve",
        "tip": string, // make it a short "title" for the actual explanation
        "explanation": string // explain in detail here
      }
    ] // give 3-4 tips
  },
  "structure": {
    "score": number, // max 100
    "tips": [
      {
        "type": "good" | "improve",
        "tip": string, // make it a short "title" for the actual explanation
        "explanation": string // explain in detail here
      }
    ] // give 3-4 tips
  },
  "skills": {
    "score": number, // max 100
    "tips": [
      {
        "type": "good" | "improve",
        "tip": string, // make it a short "title" for the actual explanation
        "explanation": string // explain in detail here
      }
    ] // give 3-4 tips
  }
}"""

FEEDBACK_INSTRUCTIONS_TEMPLATE = """You are an expert in ATS (Applicant Tracking System) and resume analysis.
Please analyze and rate this resume and suggest how to improve it.
The rating can be low if the resume is bad.
Be thorough and detailed. Don't be afraid to point out any mistakes or areas for improvement.
If there is a lot to improve, don't hesitate to give low scores. This is to help the user to improve their resume.
If available, use the job description for the job user is applying to to give more detailed feedback.
If provided, take the job description into consideration.
The job title is: {job_title}
The job description is: {job_description}
Provide the feedback using the following format:
{response_format}
Return the analysis as a JSON object, without any other text and without the backticks.
Do not include any other text or comments."""

FEEDBACK_SYSTEM_PROMPT = """You are a meticulous resume reviewer. You receive the text extracted from a candidate's resume document followed by review instructions. Follow the instructions exactly and answer with a single JSON object."""

FEEDBACK_HUMAN_PROMPT = """Resume Document ({document_path}):
---
{resume_text}
---

{instructions}
"""


def prepare_instructions(job_title: str, job_description: str) -> str:
    """Build the review instructions for one submission.

    Args:
        job_title (str): The title of the position applied for.
        job_description (str): The description of the position.

    Returns:
        str: The instruction text; identical inputs always produce identical output.

    """
    return FEEDBACK_INSTRUCTIONS_TEMPLATE.format(
        job_title=job_title,
        job_description=job_description,
        response_format=FEEDBACK_RESPONSE_FORMAT,
    )
