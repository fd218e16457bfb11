from __future__ import annotations

FEEDBACK_SCHEMA = """interface Feedback {
  overallScore: number; //max 100
  ATS: {
    score: number; //rate based on ATS suitability
    tips: {
      type: "good" | "improve";
      tip: string; //give 3-4 tips
    }[];
  };
  toneAndStyle: {
    score: number; //max 100
    tips: {
      type: "good" | "improve";
      tip: string; //make it a short "title" for the actual explanation
      explanation: string; //explain in detail here
    }[]; //give 3-4 tips
  };
  content: {
    score: number; //max 100
    tips: {
      type: "good" | "improve";
      tip: string;
      explanation: string;
    }[];
  };
  structure: {
    score: number; //max 100
    tips: {
      type: "good" | "improve";
      tip: string;
      explanation: string;
    }[];
  };
  skills: {
    score: number; //max 100
    tips: {
      type: "good" | "improve";
      tip: string;
      explanation: string;
    }[];
  };
}"""


def prepare_instructions(
    *,
    job_title: str,
    job_description: str,
    response_format: str = "json",
    schema: str = FEEDBACK_SCHEMA,
) -> str:
    """
    Description: Build the analysis prompt sent alongside the stored resume.
    Layer: L3
    Input: job title + description, output format name, feedback schema
    Output: instructions text (the schema is always embedded)
    """
    return (
        "You are an expert in ATS (Applicant Tracking System) and resume analysis. "
        "Please analyze and rate this resume and suggest how to improve it. "
        "The rating can be low if the resume is bad. "
        "Be thorough and detailed. Don't be afraid to point out any mistakes or areas for improvement. "
        "If there is a lot to improve, don't hesitate to give low scores. This is to help the user to improve their resume. "
        "If available, use the job description for the job user is applying to to give more detailed feedback. "
        "If provided, take the job description into consideration.\n"
        f"The job title is: {job_title}\n"
        f"The job description is: {job_description}\n"
        f"Provide the feedback using the following format:\n{schema}\n"
        f"Return the analysis as a {response_format.upper()} object, without any other text and without the backticks. "
        "Do not include any other text or comments."
    )
