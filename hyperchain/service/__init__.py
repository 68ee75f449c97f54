"""The framed command protocol, a client, and a server loop that hands commands to a callback."""