"""LangChain prompt template for grounded answers."""

from langchain_core.prompts import ChatPromptTemplate

SYSTEM_PROMPT = """\
You answer questions using only the shared knowledge base excerpts provided.
Cite excerpts by their [Document N] label. If the excerpts do not contain the
answer, say so plainly instead of guessing.
"""

ANSWER_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", SYSTEM_PROMPT),
        (
            "human",
            """\
## Knowledge Base Excerpts
{context}

## Question
{question}
""",
        ),
    ]
)
