# Client -> server
JOIN_ROOM = "join-room"  # {roomId, userName?}
LEAVE_ROOM = "leave-room"  # no payload
REQUEST_SCREEN = "request-screen"  # roomId (bare string)
SCREEN_RESPONSE = "screen-response"  # {to, accept}; also sent server -> client as {accept}
OFFER = "offer"  # {to, sdp}; relayed as {from, sdp}
ANSWER = "answer"  # {to, sdp}; relayed as {from, sdp}
CANDIDATE = "candidate"  # {to, candidate}; relayed as {from, candidate}
STOP_SHARING = "stop-sharing"  # roomId (bare string)

# Server -> client
ROOM_JOINED = "room-joined"  # {users: Member[]}, to the joiner
USER_JOINED = "user-joined"  # Member, to the room minus the joiner
USERS_UPDATE = "users-update"  # Member[], to the whole room
SCREEN_REQUEST = "screen-request"  # {from}, to the room minus the requester
STOPPED = "stopped"  # no payload
USER_LEFT = "user-left"  # connection id (bare string), to the room minus the leaver
