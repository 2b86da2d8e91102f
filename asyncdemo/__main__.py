from asyncdemo.cli import main

main()
