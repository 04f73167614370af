# This package handles context engineering for a single turn

# +---------------------+
# |      Memory         |   (Persistent, ranked, deduplicated)
# |---------------------|
# | Facts, preferences  |
# | Notes, check-ins    |
# | Identity facts      |
# | Recent messages     |
# +---------------------+

# +---------------------+
# |      State          |   (Per session, between turns)
# |---------------------|
# | Turn status         |
# | Turn count          |
# | Last tool calls     |
# +---------------------+

#    \    /
#     \  /
#      \/
# +------------------------------+
# |           Context            |   (Assembled under a char budget)
# |------------------------------|
# | Identity facts (always)      |
# | Relevant memories (hybrid    |
# |   keyword/semantic/recency)  |
# | Current state + time         |
# | Temporal recall              |
# +------------------------------+
#         |
#         v
#   [prompt assembler -> model -> plan]
