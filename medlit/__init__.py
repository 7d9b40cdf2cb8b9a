"""
medlit

Biomedical question answering and literature synthesis over PubMed.

Philosophy:
- Retrieve only when the model is unsure or the question is about recent work
- Every synthesized claim is tied to a citable reference
- Citation exports (APA, RIS, BibTeX) are plain in-memory text

Usage:
    from medlit.common import load_config, create_llm_client
    from medlit.pubmed import create_eutils_client
    from medlit.qa import RetrievalOrchestrator
    from medlit.synth import SynthesisComposer, generate_bibtex
"""

__version__ = "0.1.0"
