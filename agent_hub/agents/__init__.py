# =============================================================================
# Agents Package
# =============================================================================
#   - personas.py: chat persona registry and prompt resolution
#   - analyst.py: working-group answer generation through the provider chain
#   - orchestrator.py: LangGraph query graph
#     (resolve → retrieve → generate → assemble)
# =============================================================================
