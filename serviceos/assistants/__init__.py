"""LLM assistants for the blog, the file library and site blocks.

Each assistant owns a fixed menu of tools and drives them through the shared
bounded tool-call loop in :mod:`serviceos.assistants.loop`.
"""
